"""
PVE Temperature Mod - Configuration Manager
Loads the optional JSON configuration and builds the ModConfig used by every step
"""

import json
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from pve_temp_mod.core import console


DEFAULT_CONFIG_PATH = "/etc/pve-temp-mod/config.json"

DEFAULT_KNOWN_CPU_SENSORS = [
    {"prefix": "coretemp-isa-", "item_prefix": "Core ", "caption": "Core"},
    {"prefix": "k10temp-pci-", "item_prefix": "Tctl", "caption": "Temp"},
]


@dataclass(frozen=True)
class CpuSensorFamily:
    """Known CPU sensor chip prefix and how its features are labelled"""
    prefix: str
    item_prefix: str
    caption: str


@dataclass(frozen=True)
class ModConfig:
    """
    Settings for one run of the installer

    The items_per_row values control how many readings the status panel shows
    before breaking the line.
    """
    cpu_items_per_row: int = 4
    nvme_items_per_row: int = 4
    hdd_items_per_row: int = 4
    known_cpu_sensors: Tuple[CpuSensorFamily, ...] = tuple(
        CpuSensorFamily(**family) for family in DEFAULT_KNOWN_CPU_SENSORS
    )
    backup_dir: str = "/var/lib/pve-temp-mod/backup"
    nodes_pm_path: str = "/usr/share/perl5/PVE/API2/Nodes.pm"
    pvemanagerlib_js_path: str = "/usr/share/pve-manager/js/pvemanagerlib.js"
    proxy_service: str = "pveproxy"
    sensors_command: Tuple[str, ...] = ("sensors", "-j")
    drive_module: str = "drivetemp"
    cpu_sensor: Optional[Dict[str, str]] = field(default=None, compare=False)

    # Status panel layout applied alongside the new items
    body_padding: str = "20 15 20 15"
    min_height: int = 360


class ConfigManager:
    """
    Reads the configuration file and converts it into a ModConfig

    Every key is optional; missing or invalid values keep their defaults.
    """

    ITEMS_PER_ROW_KEYS = ("cpu_items_per_row", "nvme_items_per_row", "hdd_items_per_row")
    PATH_KEYS = ("backup_dir", "nodes_pm_path", "pvemanagerlib_js_path")

    @staticmethod
    def load_config(file_path: str) -> Tuple[bool, Dict, str]:
        """
        Load configuration from JSON file

        Args:
            file_path: Path to config file

        Returns:
            (success, config_dict, message)
        """
        try:
            if not os.path.exists(file_path):
                return False, {}, f"File not found: {file_path}"

            with open(file_path, 'r', encoding='utf-8') as f:
                config = json.load(f)

            if not isinstance(config, dict):
                return False, {}, "Invalid configuration format"

            return True, config, f"Configuration loaded from {file_path}"

        except json.JSONDecodeError as e:
            return False, {}, f"Invalid JSON format: {str(e)}"
        except OSError as e:
            return False, {}, f"Failed to load configuration: {str(e)}"

    @staticmethod
    def build_config(raw: Dict) -> ModConfig:
        """
        Build a ModConfig from a loaded config dict

        Args:
            raw: Dict as returned by load_config()

        Returns:
            ModConfig with invalid entries replaced by defaults
        """
        values = {}

        for key in ConfigManager.ITEMS_PER_ROW_KEYS:
            if key not in raw:
                continue
            try:
                number = int(raw[key])
                if number < 1:
                    raise ValueError("must be at least 1")
                values[key] = number
            except (TypeError, ValueError):
                console.warn(f"Invalid {key} in config; using default")

        for key in ConfigManager.PATH_KEYS + ("proxy_service", "drive_module"):
            if key in raw:
                value = str(raw[key]).strip()
                if value:
                    values[key] = value
                else:
                    console.warn(f"Empty {key} in config; using default")

        if "sensors_command" in raw:
            command = raw["sensors_command"]
            if isinstance(command, str):
                command = command.split()
            if isinstance(command, list) and command and all(isinstance(c, str) for c in command):
                values["sensors_command"] = tuple(command)
            else:
                console.warn("Invalid sensors_command in config; using default")

        if "known_cpu_sensors" in raw:
            families = ConfigManager._parse_cpu_families(raw["known_cpu_sensors"])
            if families:
                values["known_cpu_sensors"] = families
            else:
                console.warn("Invalid known_cpu_sensors in config; using default")

        cpu_sensor = raw.get("cpu_sensor")
        if isinstance(cpu_sensor, dict):
            values["cpu_sensor"] = {
                "address": str(cpu_sensor.get("address", "")),
                "item_prefix": str(cpu_sensor.get("item_prefix", "")),
                "caption": str(cpu_sensor.get("caption", "")),
            }
        elif cpu_sensor is not None:
            console.warn("Invalid cpu_sensor in config; it will be ignored")

        return ModConfig(**values)

    @staticmethod
    def _parse_cpu_families(entries) -> Tuple[CpuSensorFamily, ...]:
        if not isinstance(entries, list):
            return ()

        families: List[CpuSensorFamily] = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("prefix"):
                return ()
            families.append(CpuSensorFamily(
                prefix=str(entry["prefix"]),
                item_prefix=str(entry.get("item_prefix", "")),
                caption=str(entry.get("caption", "")),
            ))
        return tuple(families)

    @staticmethod
    def get_config(file_path: Optional[str] = None) -> ModConfig:
        """
        Load the config file if there is one and return the resulting ModConfig

        A missing file is not an error; an unreadable one is reported and ignored.
        """
        file_path = file_path or DEFAULT_CONFIG_PATH

        if not os.path.exists(file_path):
            return ModConfig()

        success, raw, message = ConfigManager.load_config(file_path)
        if not success:
            console.warn(f"{message}. Using default configuration.")
            return ModConfig()

        console.msg(message)
        return ConfigManager.build_config(raw)
