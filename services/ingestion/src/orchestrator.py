"""Ingestion orchestrator: fetch every configured query to the artifact directory."""
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .config import DataRodsConfig, IngestionConfig
from .datarods_client import DataRodsClient, FetchError
from .request_builder import DataRodsQuery, build_queries

logger = logging.getLogger(__name__)


class IngestionOrchestrator:
    """Orchestrates the download of data rods artifacts."""

    def __init__(
        self,
        config: IngestionConfig,
        datarods: DataRodsConfig,
        client: Optional[DataRodsClient] = None,
    ):
        """Initialize orchestrator.

        Args:
            config: Ingestion configuration
            datarods: Service configuration
            client: Optional client (a new one is created if omitted)
        """
        self.config = config
        self.client = client or DataRodsClient(datarods)

    @property
    def artifact_dir(self) -> Path:
        return Path(self.config.artifact_dir)

    def ingest_all(self, skip_existing: Optional[bool] = None) -> dict:
        """Fetch every (version, variable) query.

        A failed query is logged and recorded; it never aborts its siblings.

        Args:
            skip_existing: If True, keep artifacts that are already on disk.
                Defaults to the configured value.

        Returns:
            Dictionary with per-query results and summary statistics
        """
        if skip_existing is None:
            skip_existing = self.config.skip_existing

        queries = build_queries(self.config)
        logger.info(f"Starting ingestion of {len(queries)} queries into {self.artifact_dir}")

        results: List[dict] = []
        stats = {
            'total_queries': len(queries),
            'downloaded': 0,
            'skipped': 0,
            'failed': 0,
            'total_bytes': 0,
        }

        for query in queries:
            result = self._ingest_query(query, skip_existing)
            results.append(result)
            stats[result['status']] += 1
            stats['total_bytes'] += result['bytes']

        logger.info(f"Ingestion completed: {stats}")
        if stats['failed']:
            failed = [r['artifact'] for r in results if r['status'] == 'failed']
            logger.warning(f"{stats['failed']} queries failed and will be skipped downstream: {failed}")

        return {'stats': stats, 'results': results}

    def _ingest_query(self, query: DataRodsQuery, skip_existing: bool) -> Dict:
        """Fetch a single query.

        Args:
            query: Query to fetch
            skip_existing: Whether to skip artifacts already on disk

        Returns:
            Dictionary with the query outcome
        """
        artifact = self.artifact_dir / query.artifact_name
        result = {
            'version': query.version,
            'variable': query.variable,
            'artifact': artifact,
            'status': 'downloaded',
            'bytes': 0,
            'error': None,
        }

        if skip_existing and artifact.exists():
            logger.info(f"Skipping existing artifact: {artifact}")
            result['status'] = 'skipped'
            return result

        try:
            path = self.client.fetch(query, self.artifact_dir)
            result['bytes'] = path.stat().st_size
        except FetchError as e:
            result['status'] = 'failed'
            result['error'] = str(e)

        return result

    def close(self):
        """Close all connections."""
        self.client.close()
