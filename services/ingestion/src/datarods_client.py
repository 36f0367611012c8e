"""Data rods client for fetching point time series."""
import logging
import os
from pathlib import Path
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import DataRodsConfig
from .request_builder import DataRodsQuery

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """A query did not complete (network failure or service error)."""

    def __init__(self, query: DataRodsQuery, message: str):
        super().__init__(f"{query.artifact_name}: {message}")
        self.query = query


class DataRodsClient:
    """Client for the GES DISC data rods time-series service."""

    def __init__(self, config: DataRodsConfig, session: Optional[requests.Session] = None):
        """Initialize data rods client.

        Args:
            config: Data rods configuration
            session: Optional pre-built session (mainly for tests)
        """
        self.config = config
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry logic."""
        session = requests.Session()
        retry_strategy = Retry(
            total=self.config.max_retries,
            backoff_factor=self.config.retry_delay,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET", "HEAD"],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def build_url(self, query: DataRodsQuery) -> str:
        """Fully-qualified URL for a query, useful for logging and replay."""
        request = requests.Request(
            "GET",
            self.config.base_url,
            params=query.to_params(self.config.dataset, self.config.response_type),
        )
        return request.prepare().url

    def fetch(self, query: DataRodsQuery, artifact_dir: Path) -> Path:
        """Download a query result and store it unmodified.

        The response body is streamed to a temporary file and renamed into
        place, so a failure never leaves a partial artifact behind.

        Args:
            query: Query to issue
            artifact_dir: Directory for downloaded artifacts

        Returns:
            Path to the written artifact

        Raises:
            FetchError: If the request fails, the service returns an error
                status, or the artifact cannot be stored
        """
        params = query.to_params(self.config.dataset, self.config.response_type)
        output_path = Path(artifact_dir) / query.artifact_name
        temp_path = output_path.with_name(output_path.name + ".part")

        logger.info(f"Fetching {query.variable} ({query.version}) from {self.build_url(query)}")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)

            response = self.session.get(
                self.config.base_url,
                params=params,
                timeout=self.config.timeout,
                stream=True,
            )
            response.raise_for_status()

            with open(temp_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
            os.replace(temp_path, output_path)

        except requests.RequestException as e:
            logger.error(f"Fetch error for {query.artifact_name}: {e}")
            raise FetchError(query, str(e)) from e
        except OSError as e:
            logger.error(f"Fetch error for {query.artifact_name}: could not store artifact: {e}")
            raise FetchError(query, f"could not store artifact: {e}") from e
        finally:
            if temp_path.exists() and not temp_path.is_dir():
                temp_path.unlink()

        logger.info(f"Downloaded {query.artifact_name} to {output_path}")
        return output_path

    def close(self):
        """Close the HTTP session."""
        self.session.close()
