from pathlib import Path

from swagdoc.repo.framework_detector import detect_python_framework
from swagdoc.repo.scanner import scan_python_files, select_candidate_api_files


def test_scan_python_files_finds_src_files():
    repo_root = Path(__file__).resolve().parents[1]
    files = scan_python_files(repo_root, max_files=5000)

    target = (repo_root / "src" / "swagdoc" / "cli.py").resolve()
    assert any(Path(p).resolve() == target for p in files)


def test_scan_prunes_ignored_dirs_and_respects_limit(tmp_path: Path):
    (tmp_path / ".venv" / "lib").mkdir(parents=True)
    (tmp_path / ".venv" / "lib" / "x.py").write_text("", encoding="utf-8")
    (tmp_path / "pkg.egg-info").mkdir()
    (tmp_path / "pkg.egg-info" / "y.py").write_text("", encoding="utf-8")
    (tmp_path / "a.py").write_text("", encoding="utf-8")
    (tmp_path / "b.py").write_text("", encoding="utf-8")

    files = scan_python_files(tmp_path)
    assert [Path(p).name for p in files] == ["a.py", "b.py"]
    assert len(scan_python_files(tmp_path, max_files=1)) == 1


def test_detect_and_select_fastapi_files(tmp_path: Path):
    api = tmp_path / "api.py"
    api.write_text("from fastapi import FastAPI\napp = FastAPI()\n", encoding="utf-8")
    schemas = tmp_path / "schemas.py"
    schemas.write_text("from pydantic import BaseModel\nclass A(BaseModel):\n    x: int\n", encoding="utf-8")
    util = tmp_path / "util.py"
    util.write_text("def f():\n    return 1\n", encoding="utf-8")

    files = scan_python_files(tmp_path)
    framework, confidence = detect_python_framework(files)
    assert framework == "fastapi"
    assert 0.3 <= confidence <= 0.99

    candidates = select_candidate_api_files(files, framework_hint=framework)
    assert {Path(p).name for p in candidates} == {"api.py", "schemas.py"}


def test_detect_unknown_framework(tmp_path: Path):
    (tmp_path / "x.py").write_text("print('hi')\n", encoding="utf-8")
    assert detect_python_framework(scan_python_files(tmp_path)) == ("unknown", 0.2)
