"""
PVE Temperature Mod - Sensor Discovery Module
Detects CPU, NVMe and HDD/SSD temperature sensors from `sensors -j`

Falls back to asking the operator when the CPU sensor is not a known family.
"""

import subprocess
from typing import Dict, List, Optional, Sequence

import psutil

from pve_temp_mod.core import console
from pve_temp_mod.core.config_manager import ModConfig
from pve_temp_mod.core.errors import InvalidInputError
from pve_temp_mod.models.sensor_model import SensorProfile, chips_with_prefix


# ==================== CONSTANTS ====================

PROC_MODULES = "/proc/modules"

DRIVE_CHIP_PREFIX = "drivetemp-scsi-"
NVME_CHIP_PREFIX = "nvme-"

CPU_ADDRESS_PROMPT = "Enter the CPU sensor address (e.g.: coretemp-isa-0000 or k10temp-pci-00c3): "
CPU_PREFIX_PROMPT = "Enter the CPU sensor input prefix (e.g.: Core or Tc): "
CPU_CAPTION_PROMPT = "Enter the CPU temperature caption (e.g.: Core or Temp): "


# ==================== INPUT PROVIDERS ====================

class ConsoleInputProvider:
    """Asks the operator on the terminal"""

    def ask(self, prompt: str) -> str:
        try:
            return input(prompt).strip()
        except (KeyboardInterrupt, EOFError):
            print()
            raise InvalidInputError("Input cancelled. Exiting...")

    def pause(self, prompt: str):
        self.ask(prompt)


class StaticInputProvider:
    """
    Answers prompts from a prepared mapping

    Keys are the prompt texts. Anything not in the mapping goes to the
    fallback provider if there is one, otherwise it gets the default answer.
    """

    def __init__(self, answers: Optional[Dict[str, str]] = None, default: str = "", fallback=None):
        self.answers = answers or {}
        self.default = default
        self.fallback = fallback
        self.prompts: List[str] = []

    @classmethod
    def from_cpu_sensor(cls, cpu_sensor: Dict[str, str], fallback=None) -> "StaticInputProvider":
        """Build a provider answering the CPU prompts from the config file section"""
        return cls({
            CPU_ADDRESS_PROMPT: cpu_sensor.get("address", ""),
            CPU_PREFIX_PROMPT: cpu_sensor.get("item_prefix", ""),
            CPU_CAPTION_PROMPT: cpu_sensor.get("caption", ""),
        }, fallback=fallback)

    def ask(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if prompt in self.answers:
            return self.answers[prompt]
        if self.fallback is not None:
            return self.fallback.ask(prompt)
        return self.default

    def pause(self, prompt: str):
        self.prompts.append(prompt)


# ==================== SYSTEM QUERIES ====================

def read_sensor_output(command: Sequence[str] = ("sensors", "-j")) -> str:
    """
    Run the sensor utility and return its output

    Returns:
        Output text, or "" when the command is missing or fails
    """
    try:
        result = subprocess.run(
            list(command),
            capture_output=True,
            text=True,
            timeout=30
        )
    except (OSError, subprocess.SubprocessError) as e:
        console.warn(f"Could not run '{' '.join(command)}': {e}")
        return ""

    if result.returncode != 0 and not result.stdout.strip():
        console.warn(f"'{' '.join(command)}' exited with status {result.returncode}")
        return ""
    return result.stdout


def is_module_loaded(name: str, modules_path: str = PROC_MODULES) -> bool:
    """Check the loaded kernel modules (what lsmod lists) for name"""
    try:
        with open(modules_path, 'r', encoding='utf-8') as f:
            for line in f:
                fields = line.split()
                if fields and fields[0] == name:
                    return True
    except OSError:
        return False
    return False


def list_hwmon_chips() -> Dict[str, List[str]]:
    """
    Temperature chips the kernel exposes, as reported by psutil

    Returns:
        Dict of chip name -> sensor labels (empty where unsupported)
    """
    if not hasattr(psutil, "sensors_temperatures"):
        return {}

    try:
        temps = psutil.sensors_temperatures()
    except (OSError, RuntimeError):
        return {}

    return {
        chip: [entry.label or "temp" for entry in entries]
        for chip, entries in temps.items()
    }


# ==================== DETECTION ====================

def detect_drive_support(sensor_output: str, config: ModConfig, modules_path: str = PROC_MODULES) -> bool:
    console.msg("\nDetecting support for HDD/SSD temperature sensors...")

    if not is_module_loaded(config.drive_module, modules_path):
        console.warn(f"Kernel module \"{config.drive_module}\" is not loaded. "
                     "HDD/SSD temperatures will not be available.")
        return False

    drives = chips_with_prefix(sensor_output, DRIVE_CHIP_PREFIX)
    if not drives:
        console.warn("No HDD/SSD temperature sensors found.")
        return False

    console.msg("Detected sensors:\n" + "\n".join(drives))
    return True


def detect_nvme_support(sensor_output: str) -> bool:
    console.msg("\nDetecting support for NVMe temperature sensors...")

    nvme_drives = chips_with_prefix(sensor_output, NVME_CHIP_PREFIX)
    if not nvme_drives:
        console.warn("No NVMe temperature sensors found.")
        return False

    console.msg("Detected sensors:\n" + "\n".join(nvme_drives))
    return True


def detect_cpu_sensor(sensor_output: str, config: ModConfig) -> Optional[Dict[str, str]]:
    """
    Match the sensor output against the known CPU families

    The first family (in configured order) with a matching chip wins.

    Returns:
        Dict with address, item_prefix and caption, or None if no family matched
    """
    for family in config.known_cpu_sensors:
        chips = chips_with_prefix(sensor_output, family.prefix)
        if chips:
            return {
                "address": chips[0],
                "item_prefix": family.item_prefix,
                "caption": family.caption,
            }
    return None


def ask_cpu_sensor(sensor_output: str, input_provider) -> Dict[str, str]:
    """Show the sensor output and let the operator describe the CPU sensor"""
    console.warn("Could not automatically detect the CPU temperature sensor. "
                 "Please configure it manually.")

    input_provider.pause("Sensor output will be presented. Press Enter to continue...")
    console.msg(f"Sensor output:\n{sensor_output}")

    chips = list_hwmon_chips()
    if chips:
        console.msg("Temperature chips reported by the kernel:")
        for chip, labels in chips.items():
            console.msg(f"  {chip}: {', '.join(labels)}")

    return {
        "address": input_provider.ask(CPU_ADDRESS_PROMPT),
        "item_prefix": input_provider.ask(CPU_PREFIX_PROMPT),
        "caption": input_provider.ask(CPU_CAPTION_PROMPT),
    }


def detect_sensors(sensor_output: str, config: ModConfig, input_provider,
                   modules_path: str = PROC_MODULES) -> SensorProfile:
    """
    Build the sensor profile for this install run

    Args:
        sensor_output: Output of `sensors -j` ("" if unavailable)
        config: Run configuration
        input_provider: Used when the CPU sensor has to be entered manually
        modules_path: Loaded kernel modules list

    Returns:
        SensorProfile
    """
    hdd_enabled = detect_drive_support(sensor_output, config, modules_path)
    nvme_enabled = detect_nvme_support(sensor_output)

    console.msg("\nDetecting support for CPU temperature sensors...")
    cpu = detect_cpu_sensor(sensor_output, config)
    if cpu:
        console.msg(f"Detected sensor:\n{cpu['address']}")
    else:
        cpu = ask_cpu_sensor(sensor_output, input_provider)

    profile = SensorProfile(
        cpu_address=cpu["address"],
        cpu_item_prefix=cpu["item_prefix"],
        cpu_temp_caption=cpu["caption"],
        hdd_enabled=hdd_enabled,
        nvme_enabled=nvme_enabled,
    )

    if not profile.cpu_configured:
        console.warn("The CPU configuration is not complete. Temperatures will not be available.")

    return profile
