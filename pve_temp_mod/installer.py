#!/usr/bin/env python3
"""
PVE Temperature Mod
Adds hardware temperatures to the node summary panel of the Proxmox VE web UI

Usage:
    pve-mod-gui-temp install      # Detect sensors, patch the files, restart pveproxy
    pve-mod-gui-temp uninstall    # Restore the latest backups, restart pveproxy

Actions run in the order given; unknown words are ignored.
"""

import argparse
import sys
from typing import List, Optional

from pve_temp_mod import __version__
from pve_temp_mod.core import console
from pve_temp_mod.core.backup_manager import BackupManager, make_timestamp
from pve_temp_mod.core.config_manager import DEFAULT_CONFIG_PATH, ConfigManager, ModConfig
from pve_temp_mod.core.errors import ModError
from pve_temp_mod.core.patch_applier import apply_patches
from pve_temp_mod.core.patch_generator import (
    DRIVE_ADDRESS_PREFIX,
    DRIVE_SENSOR_NAME,
    NVME_ADDRESS_PREFIX,
    NVME_SENSOR_NAME,
)
from pve_temp_mod.core.sensor_discovery import (
    ConsoleInputProvider,
    StaticInputProvider,
    detect_sensors,
    read_sensor_output,
)
from pve_temp_mod.core.service_manager import install_packages, restart_proxy
from pve_temp_mod.models.sensor_model import (
    SensorProfile,
    html_to_text,
    parse_sensor_output,
    render_cpu_temps,
    render_drive_temps,
)


ACTIONS = ("install", "uninstall")

USAGE = "\nUsage:\n{prog} [install | uninstall]\n"


def show_preview(sensor_output: str, profile: SensorProfile, config: ModConfig):
    """Print what the summary panel will show with the current readings"""
    data = parse_sensor_output(sensor_output)
    if not data:
        return

    console.msg("\nCurrent readings as they will appear in the summary panel:")
    console.msg("  CPU:     " + html_to_text(render_cpu_temps(data, profile, config.cpu_items_per_row)))
    if profile.hdd_enabled:
        console.msg("  HDD/SSD: " + html_to_text(render_drive_temps(
            data, DRIVE_ADDRESS_PREFIX, DRIVE_SENSOR_NAME, config.hdd_items_per_row)))
    if profile.nvme_enabled:
        console.msg("  NVMe:    " + html_to_text(render_drive_temps(
            data, NVME_ADDRESS_PREFIX, NVME_SENSOR_NAME, config.nvme_items_per_row)))


def install_mod(config: ModConfig, input_provider) -> bool:
    """
    Detect sensors and patch both target files

    Returns:
        True if a file was changed
    """
    console.msg("\nPreparing mod installation...")

    sensor_output = read_sensor_output(config.sensors_command)
    profile = detect_sensors(sensor_output, config, input_provider)
    show_preview(sensor_output, profile, config)
    print()

    backups = BackupManager(config.backup_dir)
    changed = apply_patches(profile, config, backups, make_timestamp())

    if changed:
        restart_proxy(config.proxy_service)
        console.ok("Installation completed")
    return changed


def uninstall_mod(config: ModConfig) -> bool:
    """
    Restore both target files from their latest backups

    Returns:
        True if at least one file was restored
    """
    console.msg("\nRestoring modified files...")

    backups = BackupManager(config.backup_dir)
    restored = False
    for target in (config.nodes_pm_path, config.pvemanagerlib_js_path):
        if backups.restore_latest(target):
            restored = True

    if restored:
        restart_proxy(config.proxy_service)
    return restored


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pve-mod-gui-temp",
        description="Show CPU, NVMe and HDD/SSD temperatures in the Proxmox VE summary panel"
    )
    parser.add_argument('actions', nargs='*', metavar='install|uninstall',
                        help='Actions to run, in order')
    parser.add_argument('--config', default=DEFAULT_CONFIG_PATH,
                        help=f'JSON configuration file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def main(argv: Optional[List[str]] = None, input_provider=None) -> int:
    """
    Main entry point

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])
        input_provider: Answers interactive prompts (defaults to the terminal,
            or the cpu_sensor section of the config file when present)

    Returns:
        Process exit code
    """
    parser = build_parser()
    # Unknown words and flags are ignored; action words may follow options
    args, extras = parser.parse_known_args(argv)

    console.set_color(not args.no_color and console.color_supported())

    actions = [token for token in args.actions + extras if token in ACTIONS]
    if not actions:
        console.msgb(USAGE.format(prog=parser.prog))
        return 1

    config = ConfigManager.get_config(args.config)

    if input_provider is None:
        if config.cpu_sensor is not None:
            input_provider = StaticInputProvider.from_cpu_sensor(
                config.cpu_sensor, fallback=ConsoleInputProvider())
        else:
            input_provider = ConsoleInputProvider()

    try:
        for action in actions:
            if action == "install":
                console.msgb("\nInstalling the Proxmox VE temperatures display mod...")
                install_packages(input_provider, config.sensors_command[0])
                install_mod(config, input_provider)
            else:
                console.msgb("\nUninstalling the Proxmox VE temperatures display mod...")
                uninstall_mod(config)
            print()
    except ModError as e:
        if e.exit_code == 0:
            console.msg(str(e))
        else:
            console.error(str(e))
        return e.exit_code

    return 0


if __name__ == "__main__":
    sys.exit(main())
