import json
import shutil
import subprocess

import pytest

from pve_temp_mod.core.config_manager import ModConfig
from pve_temp_mod.core.patch_generator import (
    DRIVE_ADDRESS_PREFIX,
    DRIVE_SENSOR_NAME,
    NVME_ADDRESS_PREFIX,
    NVME_SENSOR_NAME,
    SPACER_ITEM,
    generate_backend_statement,
    generate_cpu_item,
    generate_hdd_item,
    generate_nvme_item,
    generate_ui_items,
)
from pve_temp_mod.models.sensor_model import (
    SensorProfile,
    parse_sensor_output,
    render_cpu_temps,
    render_drive_temps,
)


CORETEMP = SensorProfile("coretemp-isa-0000", "Core ", "Core")


def test_backend_statement():
    assert generate_backend_statement(ModConfig()) == "$res->{thermalstate} = `sensors -j`;"


def test_cpu_only_without_drives():
    items = generate_ui_items(CORETEMP, ModConfig())

    assert len(items) == 1
    assert "itemId: 'thermalCpu'" in items[0]
    assert SPACER_ITEM not in items


def test_block_order_with_all_drives():
    profile = SensorProfile("coretemp-isa-0000", "Core ", "Core", hdd_enabled=True, nvme_enabled=True)

    items = generate_ui_items(profile, ModConfig())

    assert len(items) == 4
    assert "itemId: 'thermalCpu'" in items[0]
    assert "itemId: 'thermalHdd'" in items[1]
    assert "itemId: 'thermalNvme'" in items[2]
    assert items[3] == SPACER_ITEM


def test_no_spacer_with_one_drive_kind():
    profile = SensorProfile("coretemp-isa-0000", "Core ", "Core", nvme_enabled=True)

    items = generate_ui_items(profile, ModConfig())

    assert [("thermalNvme" in item) for item in items] == [False, True]


def test_cpu_item_carries_profile_and_layout():
    item = generate_cpu_item(CORETEMP, ModConfig(cpu_items_per_row=6))

    assert 'const cpuAddress = "coretemp-isa-0000";' in item
    assert 'const cpuItemPrefix = "Core ";' in item
    assert 'const cpuTempCaption = "Core";' in item
    assert "const itemsPerRow = 6;" in item
    assert "textField: 'thermalstate'" in item
    assert r"coreKey.match(/\S+\s*(\d+)/)" in item
    assert "`${cpuTempCaption}&nbsp;${index}:&nbsp;${temp}&deg;C`" in item


def test_empty_cpu_profile_renders_not_available():
    item = generate_cpu_item(SensorProfile(), ModConfig())

    assert 'const cpuAddress = "";' in item
    assert item.rstrip().endswith("return 'N/A';\n\t}\n},")


def test_manual_input_is_quoted():
    profile = SensorProfile('bad"chip', "Core ", "Core")

    item = generate_cpu_item(profile, ModConfig())

    assert 'const cpuAddress = "bad\\"chip";' in item


def test_drive_items_use_their_sensor():
    profile = SensorProfile(hdd_enabled=True, nvme_enabled=True)

    items = generate_ui_items(profile, ModConfig(hdd_items_per_row=2))

    assert 'const addressPrefix = "drivetemp-scsi-";' in items[1]
    assert 'const sensorName = "temp1";' in items[1]
    assert "const itemsPerRow = 2;" in items[1]
    assert 'const addressPrefix = "nvme-pci-";' in items[2]
    assert 'const sensorName = "Composite";' in items[2]


def run_renderer(item, value):
    """Call the renderer of a generated item under node with value as the thermal state"""
    script = (
        "const gettext = (text) => text;\n"
        "const item = " + item.rstrip().rstrip(",") + ";\n"
        "process.stdout.write(item.renderer(" + json.dumps(value) + "));\n"
    )
    result = subprocess.run(["node", "-e", script], capture_output=True, text=True, timeout=30, check=True)
    return result.stdout


needs_node = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")


@needs_node
@pytest.mark.parametrize("profile", [CORETEMP, SensorProfile(), SensorProfile("coretemp-isa-0000", "Package", "CPU")])
@pytest.mark.parametrize("items_per_row", [1, 4])
def test_cpu_renderer_matches_preview(intel_sensors, profile, items_per_row):
    item = generate_cpu_item(profile, ModConfig(cpu_items_per_row=items_per_row))

    expected = render_cpu_temps(parse_sensor_output(intel_sensors), profile, items_per_row)

    assert run_renderer(item, intel_sensors) == expected


@needs_node
@pytest.mark.parametrize("items_per_row", [1, 4])
def test_drive_renderers_match_preview(intel_sensors, items_per_row):
    config = ModConfig(hdd_items_per_row=items_per_row, nvme_items_per_row=items_per_row)
    data = parse_sensor_output(intel_sensors)

    assert run_renderer(generate_hdd_item(config), intel_sensors) == render_drive_temps(
        data, DRIVE_ADDRESS_PREFIX, DRIVE_SENSOR_NAME, items_per_row)
    assert run_renderer(generate_nvme_item(config), intel_sensors) == render_drive_temps(
        data, NVME_ADDRESS_PREFIX, NVME_SENSOR_NAME, items_per_row)


@needs_node
def test_renderers_without_readings_show_not_available():
    config = ModConfig()

    for item in (generate_cpu_item(CORETEMP, config), generate_hdd_item(config), generate_nvme_item(config)):
        assert run_renderer(item, "not json") == "N/A"
        assert run_renderer(item, "{}") == "N/A"
