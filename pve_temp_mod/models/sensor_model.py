"""
PVE Temperature Mod - Sensor Data Model
Sensor profile built during detection and a preview of the panel text

The preview functions follow the JavaScript renderers in patch_generator.py
reading for reading, so the installer can show what the summary panel will
display before anything is patched.
"""

import json
import re
from dataclasses import dataclass
from typing import Dict, List


# Chip addresses are the top level keys of `sensors -j`, all at the same indent
CHIP_KEY_PATTERN = re.compile(r'^([ \t]*)"([^"]+)"\s*:\s*\{', re.MULTILINE)

# Trailing number of a feature name, e.g. "Core 3" -> "3"
FEATURE_INDEX_PATTERN = re.compile(r'\S+\s*(\d+)')

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class SensorProfile:
    """What the status panel should show, decided once per install run"""
    cpu_address: str = ""
    cpu_item_prefix: str = ""
    cpu_temp_caption: str = ""
    hdd_enabled: bool = False
    nvme_enabled: bool = False

    @property
    def cpu_configured(self) -> bool:
        return bool(self.cpu_address and self.cpu_item_prefix)


def parse_sensor_output(output: str) -> Dict:
    """
    Parse `sensors -j` output

    Returns:
        Dict of chip address -> features, or {} when the output is not valid JSON
    """
    if not output or not output.strip():
        return {}
    try:
        data = json.loads(output)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def chip_names(output: str) -> List[str]:
    """
    List chip addresses found in the sensor output, in output order

    Works on the raw text so a chip that breaks the JSON (sensors sometimes
    prints warnings in between) still shows up. Without valid JSON, chips are
    the keys indented like the first one; deeper keys are features.
    """
    data = parse_sensor_output(output)
    if data:
        return list(data.keys())

    keys = CHIP_KEY_PATTERN.findall(output or "")
    if not keys:
        return []
    chip_indent = keys[0][0]
    return [name for indent, name in keys if indent == chip_indent]


def chips_with_prefix(output: str, prefix: str) -> List[str]:
    return [name for name in chip_names(output) if name.startswith(prefix)]


# ==================== PANEL PREVIEW ====================

def format_js_number(value) -> str:
    """Format a reading the way a JavaScript template string would"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if value is None:
        return "null"
    return str(value)


def join_temps(temps: List[str], items_per_row: int) -> str:
    """Join readings with ' | ' and break the line after every items_per_row"""
    if not temps:
        return NOT_AVAILABLE

    parts = []
    for index, temp in enumerate(temps):
        parts.append(temp)
        if index + 1 < len(temps):
            parts.append("<br>" if (index + 1) % items_per_row == 0 else " | ")
    return "".join(parts)


def render_cpu_temps(data: Dict, profile: SensorProfile, items_per_row: int) -> str:
    """
    Render CPU readings for the status panel

    Args:
        data: Parsed sensor output
        profile: Detected sensor profile
        items_per_row: Readings per line

    Returns:
        HTML fragment, or "N/A" when no reading matches
    """
    chip = data.get(profile.cpu_address)
    if not isinstance(chip, dict):
        return NOT_AVAILABLE

    temps = []
    for feature, readings in chip.items():
        if not str(feature).startswith(profile.cpu_item_prefix) or not isinstance(readings, dict):
            continue
        for reading, value in readings.items():
            if '_input' not in reading:
                continue
            match = FEATURE_INDEX_PATTERN.search(feature)
            if match:
                temps.append(f"{profile.cpu_temp_caption}&nbsp;{match.group(1)}:&nbsp;"
                             f"{format_js_number(value)}&deg;C")
            else:
                temps.append(f"{profile.cpu_temp_caption}:&nbsp;{format_js_number(value)}&deg;C")

    return join_temps(temps, items_per_row)


def render_drive_temps(data: Dict, address_prefix: str, sensor_name: str, items_per_row: int) -> str:
    """
    Render per-drive readings ("Drive 1", "Drive 2", ...) for HDD/SSD or NVMe chips

    Drives are numbered by their position after sorting the chip addresses.
    """
    drive_keys = sorted(key for key in data if str(key).startswith(address_prefix))

    temps = []
    for index, drive_key in enumerate(drive_keys):
        readings = data[drive_key].get(sensor_name) if isinstance(data[drive_key], dict) else None
        if not isinstance(readings, dict):
            continue
        for reading, value in readings.items():
            if '_input' in reading:
                temps.append(f"Drive&nbsp;{index + 1}:&nbsp;{format_js_number(value)}&deg;C")

    return join_temps(temps, items_per_row)


def html_to_text(fragment: str) -> str:
    """Turn a rendered panel fragment into plain text for the terminal"""
    return (fragment.replace("&nbsp;", " ")
            .replace("&deg;", "°")
            .replace("<br>", "\n    "))
