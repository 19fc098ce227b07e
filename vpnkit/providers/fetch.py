"""
Descargas HTTP (releases de GitHub) con requests
"""

from pathlib import Path
from typing import Optional

import requests

GITHUB_API = "https://api.github.com"


class RequestsFetcher:
    """Implementa Fetcher; los errores de red se devuelven como False, nunca se lanzan."""

    def __init__(self, timeout: int = 60, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.last_error: Optional[str] = None

    def download(self, url: str, destination: Path) -> bool:
        """
        Descarga `url` en `destination` (siguiendo redirecciones)

        Returns:
            True si la respuesta fue 2xx y el archivo quedó escrito
        """
        self.last_error = None
        destination = Path(destination)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            with self.session.get(url, stream=True, timeout=self.timeout, allow_redirects=True) as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    for chunk in response.iter_content(chunk_size=65536):
                        if chunk:
                            f.write(chunk)
            return True
        except requests.exceptions.HTTPError as e:
            self.last_error = f"HTTP {e.response.status_code if e.response is not None else '?'}"
        except requests.exceptions.Timeout:
            self.last_error = "Timeout"
        except requests.exceptions.ConnectionError:
            self.last_error = "Error de conexión"
        except requests.exceptions.RequestException as e:
            self.last_error = str(e)
        except OSError as e:
            self.last_error = f"No se pudo escribir {destination}: {e}"
        destination.unlink(missing_ok=True)
        return False

    def latest_release_tag(self, repo: str) -> Optional[str]:
        """tag_name del último release de `owner/repo`, o None si no se pudo obtener."""
        url = f"{GITHUB_API}/repos/{repo}/releases/latest"
        try:
            response = self.session.get(
                url,
                headers={"Accept": "application/vnd.github+json"},
                timeout=self.timeout,
            )
            if response.status_code != 200:
                self.last_error = f"Error {response.status_code}: {response.text[:200]}"
                return None
            tag = response.json().get("tag_name")
        except requests.exceptions.RequestException as e:
            self.last_error = str(e)
            return None
        except ValueError:
            self.last_error = "Respuesta no JSON de la API de GitHub"
            return None
        return tag or None
