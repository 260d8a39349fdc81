import codecs
import os
from pathlib import Path

import pytest

from depotpilot.exceptions import ValidationError
from depotpilot.services.repository import ApplicabilityMatcher, normalize_platform_id, parse_platform_ids


def write_cva(path: Path, *sys_ids: str) -> None:
    lines = [
        "[CVA File Information]",
        "CVATimeStamp=20240101",
        "",
        "[System Information]",
        "SysName1=HP EliteBook 840 G9",
    ]
    lines += [f"SysId{i}=0x{sys_id}" for i, sys_id in enumerate(sys_ids, start=1)]
    lines += ["", "[Software Title]", "US=Some Driver"]
    path.write_text("\n".join(lines), encoding="utf-8")


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    write_cva(tmp_path / "sp100.cva", "8AB8", "8AB9")
    (tmp_path / "sp100.exe").write_bytes(b"MZ")
    write_cva(tmp_path / "sp200.cva", "1234")
    (tmp_path / "sp200.exe").write_bytes(b"MZ")
    # Descriptor without an installer
    write_cva(tmp_path / "sp300.cva", "8AB8")
    return tmp_path


def test_find_applicable_matches_case_insensitively(repo: Path) -> None:
    matcher = ApplicabilityMatcher()

    assert matcher.find_applicable(repo, "8ab8") == ["sp100.exe"]
    assert matcher.find_applicable(repo, "1234") == ["sp200.exe"]


def test_missing_installer_is_not_returned(repo: Path) -> None:
    matcher = ApplicabilityMatcher()

    assert "sp300.exe" not in matcher.find_applicable(repo, "8AB8")


@pytest.mark.parametrize("platform_id", ["FFFF", "zz12", "", "8AB", "Unknown"])
def test_unknown_or_malformed_platform_yields_empty_list(repo: Path, platform_id: str) -> None:
    assert ApplicabilityMatcher().find_applicable(repo, platform_id) == []


def test_missing_repository_yields_empty_list(tmp_path: Path) -> None:
    assert ApplicabilityMatcher().find_applicable(tmp_path / "nope", "8AB8") == []


def test_descriptor_change_invalidates_cache(repo: Path) -> None:
    matcher = ApplicabilityMatcher()
    assert matcher.find_applicable(repo, "8AB8") == ["sp100.exe"]

    descriptor = repo / "sp200.cva"
    write_cva(descriptor, "1234", "8AB8")
    stat = descriptor.stat()
    os.utime(descriptor, (stat.st_atime, stat.st_mtime + 10))

    assert matcher.find_applicable(repo, "8AB8") == ["sp100.exe", "sp200.exe"]


def test_installer_lookup_ignores_case(tmp_path: Path) -> None:
    write_cva(tmp_path / "SP400.CVA", "8AB8")
    (tmp_path / "sp400.EXE").write_bytes(b"MZ")

    assert ApplicabilityMatcher().find_applicable(tmp_path, "8AB8") == ["sp400.EXE"]


def test_utf16_descriptor_is_parsed(tmp_path: Path) -> None:
    text = "[System Information]\r\nSysId1=0x8AB8\r\n"
    (tmp_path / "sp500.cva").write_bytes(codecs.BOM_UTF16_LE + text.encode("utf-16-le"))
    (tmp_path / "sp500.exe").write_bytes(b"MZ")

    assert ApplicabilityMatcher().find_applicable(tmp_path, "8AB8") == ["sp500.exe"]


def test_parse_platform_ids_reads_only_system_information() -> None:
    text = "\n".join(
        [
            "[Other]",
            "SysId1=0xAAAA",
            "[System Information]",
            "; comment",
            "SysId1=0x8ab8",
            "SysName1=Something",
            "SysId2=0x83B2",
        ]
    )

    assert parse_platform_ids(text) == frozenset({"8AB8", "83B2"})


def test_normalize_platform_id() -> None:
    assert normalize_platform_id(" 8ab8 ") == "8AB8"
    with pytest.raises(ValidationError, match="4 hexadecimal"):
        normalize_platform_id("zz12")
