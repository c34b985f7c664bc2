import importlib.util
import os

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def _load_script():
    path = os.path.join(ROOT, "scripts", "diagnose_seeds.py")
    spec = importlib.util.spec_from_file_location("diagnose_seeds", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_run_for_seed_reports_clean_world():
    mod = _load_script()
    result = mod.run_for_seed(292372, steps=6)
    assert result["seed"] == 292372
    assert result["ok"] is True
    assert result["issues"]["bad_regions"] == []
    assert result["issues"]["regions_checked"] >= 2


def test_main_exit_code(capsys):
    mod = _load_script()
    assert mod.main(["11", "--steps", "3"]) == 0
    assert '"results"' in capsys.readouterr().out
