"""Package applicability lookup based on SoftPaq ``.cva`` descriptors.

A descriptor is an INI-style file. The platforms a package supports are listed
in its ``[System Information]`` section as ``SysId<n>=0x<4 hex digits>``
entries. Descriptors are parsed once and the result is cached per repository
path until the file's modification time changes.
"""

import codecs
import re
import threading
from pathlib import Path

from depotpilot.exceptions import ValidationError
from depotpilot.logger import get_logger
from depotpilot.models.repository import RepositoryPackage

logger = get_logger(__name__)

PLATFORM_ID_PATTERN = re.compile(r"^[A-Fa-f0-9]{4}$")
_SYSID_LINE = re.compile(r"^SysId\d*\s*=\s*(?:0x)?([A-Fa-f0-9]{4})\b", re.IGNORECASE)
_PLATFORM_SECTION = "system information"


def normalize_platform_id(value: str) -> str:
    """Return ``value`` as an upper-case platform id.

    Raises:
        ValidationError: If it is not exactly four hexadecimal characters
    """
    candidate = (value or "").strip()
    if not PLATFORM_ID_PATTERN.match(candidate):
        raise ValidationError(
            "Platform must be exactly 4 hexadecimal characters (e.g. 8AB8), got '{value}'",
            value=candidate,
        )
    return candidate.upper()


def decode_descriptor(data: bytes) -> str:
    """Decode descriptor bytes. Vendor tools write UTF-16 with a BOM, UTF-8, or ANSI."""
    if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return data.decode("utf-16", errors="replace")
    if data.startswith(codecs.BOM_UTF8):
        return data[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("cp1252", errors="replace")


def parse_platform_ids(text: str) -> frozenset[str]:
    """Extract the platform ids from the ``[System Information]`` section."""
    ids: set[str] = set()
    section: str | None = None
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith(";"):
            continue
        if line.startswith("[") and line.endswith("]"):
            section = line[1:-1].strip().lower()
            continue
        if section != _PLATFORM_SECTION:
            continue
        match = _SYSID_LINE.match(line)
        if match:
            ids.add(match.group(1).upper())
    return frozenset(ids)


class ApplicabilityMatcher:
    """Finds repository installers whose descriptor lists a platform id."""

    def __init__(self, descriptor_extension: str = ".cva", installer_extension: str = ".exe") -> None:
        self.descriptor_extension = descriptor_extension.lower()
        self.installer_extension = installer_extension.lower()
        # repo path -> descriptor name -> (mtime, platform ids)
        self._cache: dict[Path, dict[str, tuple[float, frozenset[str]]]] = {}
        self._lock = threading.Lock()

    def _platform_ids(self, repo_key: Path, descriptor: Path) -> frozenset[str] | None:
        try:
            mtime = descriptor.stat().st_mtime
        except OSError:
            return None

        with self._lock:
            cached = self._cache.setdefault(repo_key, {}).get(descriptor.name)
        if cached and cached[0] == mtime:
            return cached[1]

        try:
            ids = parse_platform_ids(decode_descriptor(descriptor.read_bytes()))
        except OSError as e:
            logger.warning("Cannot read descriptor", descriptor=str(descriptor), error=str(e))
            return None

        with self._lock:
            self._cache.setdefault(repo_key, {})[descriptor.name] = (mtime, ids)
        return ids

    def packages(self, repo_path: Path) -> list[RepositoryPackage]:
        """List every descriptor in ``repo_path`` whose installer is present."""
        repo_path = Path(repo_path)
        if not repo_path.is_dir():
            return []

        files = {p.name.lower(): p for p in repo_path.iterdir() if p.is_file()}
        descriptors = sorted(
            (p for name, p in files.items() if name.endswith(self.descriptor_extension)),
            key=lambda p: p.name.lower(),
        )

        repo_key = repo_path.resolve()
        with self._lock:
            cache = self._cache.setdefault(repo_key, {})
            for stale in set(cache) - {d.name for d in descriptors}:
                del cache[stale]

        result: list[RepositoryPackage] = []
        for descriptor in descriptors:
            installer_key = descriptor.name[: -len(self.descriptor_extension)].lower() + self.installer_extension
            installer = files.get(installer_key)
            if installer is None:
                continue
            ids = self._platform_ids(repo_key, descriptor)
            if ids is None:
                continue
            result.append(RepositoryPackage(filename=installer.name, descriptor=descriptor.name, platform_ids=ids))
        return result

    def find_applicable(self, repo_path: Path, platform_id: str) -> list[str]:
        """Return installer file names applicable to ``platform_id``.

        Unknown or malformed platform ids yield an empty list.
        """
        if not platform_id or not PLATFORM_ID_PATTERN.match(platform_id.strip()):
            return []
        wanted = platform_id.strip().upper()
        return [pkg.filename for pkg in self.packages(repo_path) if wanted in pkg.platform_ids]
