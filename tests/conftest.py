"""Fakes de los contratos y fixtures comunes."""

from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from vpnkit.core.settings import Settings


class FakePackageManager:
    """PackageManager en memoria que registra cada llamada."""

    name = "apt"

    def __init__(
        self,
        installed: Iterable[str] = (),
        install_results: Optional[Dict[str, Tuple[bool, str]]] = None,
        file_results: Optional[List[Tuple[bool, str]]] = None,
    ):
        self.installed = set(installed)
        self.install_results = dict(install_results or {})
        self.file_results = list(file_results or [])
        self.install_calls: List[str] = []
        self.file_calls: List[Tuple[Path, bool]] = []

    def is_installed(self, name: str) -> bool:
        return name in self.installed

    def install(self, name: str) -> Tuple[bool, str]:
        self.install_calls.append(name)
        ok, detail = self.install_results.get(name, (True, ""))
        if ok:
            self.installed.add(name)
        return ok, detail

    def install_from_file(self, path: Path, force_dependencies: bool = False) -> Tuple[bool, str]:
        self.file_calls.append((Path(path), force_dependencies))
        assert Path(path).exists(), "el archivo descargado debe existir al instalar"
        ok, detail = self.file_results.pop(0) if self.file_results else (True, "")
        return ok, detail


class FakeConfigStore:
    """ConfigStore en memoria con claves estilo uci."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data = dict(data or {})
        self.set_calls: List[Tuple[str, str]] = []
        self.delete_calls: List[str] = []
        self.commits = 0

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.set_calls.append((key, value))
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.delete_calls.append(key)
        for existing in list(self.data):
            if existing == key or existing.startswith(key + "."):
                del self.data[existing]

    def list_keys_matching(self, pattern: str) -> List[str]:
        return sorted(k for k in self.data if fnmatchcase(k, pattern))

    def commit(self) -> None:
        self.commits += 1

    @property
    def mutated(self) -> bool:
        return bool(self.set_calls or self.delete_calls)


class FakeFetcher:
    """Fetcher que 'descarga' escribiendo un archivo; `failing` son URLs que fallan."""

    def __init__(self, failing: Iterable[str] = (), content: bytes = b"ipk"):
        self.failing = set(failing)
        self.content = content
        self.downloads: List[Tuple[str, Path]] = []
        self.last_error = None

    def download(self, url: str, destination: Path) -> bool:
        self.downloads.append((url, Path(destination)))
        if url in self.failing:
            return False
        Path(destination).parent.mkdir(parents=True, exist_ok=True)
        Path(destination).write_bytes(self.content)
        return True


class FakePrompter:
    """
    Respuestas por fragmento del texto de la pregunta.
    `answers` puede mapear a una lista para responder distinto en cada pregunta.
    """

    def __init__(self, answers: Optional[Dict[str, object]] = None, confirms: Optional[Dict[str, bool]] = None):
        self.answers = dict(answers or {})
        self.confirms = dict(confirms or {})
        self.asked: List[str] = []
        self.confirmed: List[str] = []

    def ask(self, prompt: str, default: str = "", password: bool = False) -> str:
        self.asked.append(prompt)
        for fragment, value in self.answers.items():
            if fragment in prompt:
                if isinstance(value, list):
                    return value.pop(0) if value else default
                return value
        return default

    def confirm(self, prompt: str, default: bool = False) -> bool:
        self.confirmed.append(prompt)
        for fragment, value in self.confirms.items():
            if fragment in prompt:
                return value
        return default


@pytest.fixture
def packages():
    return FakePackageManager()


@pytest.fixture
def store():
    return FakeConfigStore()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def scratch(tmp_path):
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def settings(scratch):
    return Settings(scratch_dir=scratch)


def by_name(report) -> Dict[str, object]:
    """Outcomes de un RunReport indexados por nombre de recurso."""
    return {o.resource_name: o for o in report.outcomes}
