from __future__ import annotations

import functools
import json

from duflame import cli, scanner


def populate(root):
    (root / "src").mkdir()
    (root / "src" / "a.bin").write_bytes(b"x" * 100)
    (root / "src" / "sub").mkdir()
    (root / "src" / "sub" / "b.bin").write_bytes(b"x" * 50)


def test_main_writes_report(tmp_path):
    populate(tmp_path)
    out = tmp_path / "report.html"
    dump = tmp_path / "report.json"
    rc = cli.main(["-C", str(tmp_path / "src"), "-o", str(out), "--json", str(dump), "-j", "2"])

    assert rc == 0
    assert "[ROOT]" in out.read_text(encoding="utf-8")
    data = json.loads(dump.read_text(encoding="utf-8"))
    assert data["usage"]["size"] == 150


def test_limits_are_clamped(tmp_path):
    populate(tmp_path)
    out = tmp_path / "report.html"
    dump = tmp_path / "report.json"
    rc = cli.main(["-C", str(tmp_path / "src"), "-o", str(out), "--json", str(dump),
                   "-n", "0", "-d", "-3", "-j", "0"])

    assert rc == 0
    usage = json.loads(dump.read_text(encoding="utf-8"))["usage"]
    assert len(usage["entries"]) == 2
    assert usage["entries"][0]["size"] == 100
    assert usage["entries"][1]["name"] == "[OTHERS]"
    assert usage["entries"][1]["size"] == 50
    assert all(e["entries"] == [] for e in usage["entries"])


def test_dirs_only_flag(tmp_path):
    populate(tmp_path)
    dump = tmp_path / "report.json"
    rc = cli.main(["-C", str(tmp_path / "src"), "-o", str(tmp_path / "r.html"),
                   "--json", str(dump), "--dirs-only"])
    assert rc == 0
    usage = json.loads(dump.read_text(encoding="utf-8"))["usage"]
    assert usage["size"] == 150
    assert [e["name"] for e in usage["entries"]] == ["sub"]


def test_unwritable_output_is_fatal(tmp_path):
    populate(tmp_path)
    rc = cli.main(["-C", str(tmp_path / "src"), "-o", str(tmp_path / "missing" / "r.html")])
    assert rc == 1


def test_missing_root_is_fatal(tmp_path):
    out = tmp_path / "r.html"
    rc = cli.main(["-C", str(tmp_path / "nope"), "-o", str(out)])
    assert rc == 1
    assert not out.exists()


def test_file_root_is_fatal(tmp_path):
    populate(tmp_path)
    out = tmp_path / "r.html"
    rc = cli.main(["-C", str(tmp_path / "src" / "a.bin"), "-o", str(out)])
    assert rc == 1
    assert not out.exists()


def test_unreadable_subdirectory_is_not_fatal(tmp_path, monkeypatch):
    populate(tmp_path)
    bad = str(tmp_path / "src" / "sub")

    def lister(path):
        if path == bad:
            raise PermissionError(13, "Permission denied", path)
        return scanner.list_entries(path)

    monkeypatch.setattr(cli, "scan_tree", functools.partial(scanner.scan_tree, list_dir=lister))
    dump = tmp_path / "r.json"
    rc = cli.main(["-C", str(tmp_path / "src"), "-o", str(tmp_path / "r.html"), "--json", str(dump)])
    assert rc == 0
    assert json.loads(dump.read_text(encoding="utf-8"))["usage"]["size"] == 100
