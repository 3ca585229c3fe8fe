import json
import os
import shutil

import pytest

from pve_temp_mod.core import console
from pve_temp_mod.core.config_manager import ModConfig


FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def fixture_path(name):
    return os.path.join(FIXTURES_DIR, name)


def read_fixture(name):
    with open(fixture_path(name), 'r', encoding='utf-8') as f:
        return f.read()


@pytest.fixture(autouse=True)
def plain_console():
    console.set_color(False)
    yield
    console.set_color(True)


@pytest.fixture
def intel_sensors():
    return read_fixture("sensors_intel.json")


@pytest.fixture
def amd_sensors():
    return read_fixture("sensors_amd.json")


@pytest.fixture
def target_files(tmp_path):
    """Writable copies of Nodes.pm and pvemanagerlib.js"""
    nodes_pm = tmp_path / "Nodes.pm"
    pvemanagerlib_js = tmp_path / "pvemanagerlib.js"
    shutil.copyfile(fixture_path("Nodes.pm"), nodes_pm)
    shutil.copyfile(fixture_path("pvemanagerlib.js"), pvemanagerlib_js)
    return str(nodes_pm), str(pvemanagerlib_js)


@pytest.fixture
def mod_config(tmp_path, target_files):
    nodes_pm, pvemanagerlib_js = target_files
    return ModConfig(
        backup_dir=str(tmp_path / "backup"),
        nodes_pm_path=nodes_pm,
        pvemanagerlib_js_path=pvemanagerlib_js,
    )


@pytest.fixture
def config_file(tmp_path, mod_config):
    """JSON config file pointing the installer at the temporary copies"""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "backup_dir": mod_config.backup_dir,
        "nodes_pm_path": mod_config.nodes_pm_path,
        "pvemanagerlib_js_path": mod_config.pvemanagerlib_js_path,
    }), encoding='utf-8')
    return str(path)
