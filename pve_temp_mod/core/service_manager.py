"""
PVE Temperature Mod - Service Manager
Installs lm-sensors on request and restarts the PVE web proxy
"""

import shutil
import subprocess

from pve_temp_mod.core import console
from pve_temp_mod.core.errors import DependencyDeclined, InvalidInputError


SENSORS_PACKAGE = "lm-sensors"


def command_available(command: str) -> bool:
    return shutil.which(command) is not None


def install_packages(input_provider, command: str = "sensors"):
    """
    Offer to install lm-sensors when the sensors command is missing

    Raises:
        DependencyDeclined: The operator answered no
        InvalidInputError: The answer was not y or n
    """
    if command_available(command):
        return

    choice = input_provider.ask(f"{SENSORS_PACKAGE} is not installed. Would you like to install it? (y/n) ")

    if choice in ("y", "Y"):
        subprocess.run(["apt-get", "update"])
        subprocess.run(["apt-get", "install", SENSORS_PACKAGE])
    elif choice in ("n", "N"):
        raise DependencyDeclined(
            f"Decided to not install {SENSORS_PACKAGE}. The mod cannot run without it. Exiting..."
        )
    else:
        raise InvalidInputError("Invalid input. Exiting...")


def restart_proxy(service: str = "pveproxy") -> int:
    """
    Restart the web proxy so it serves the patched files

    The result is not verified; a failure is only reported.

    Returns:
        Return code of systemctl (127 if systemctl could not be run)
    """
    console.msg("\nRestarting PVE proxy...")
    try:
        result = subprocess.run(["systemctl", "restart", service])
    except OSError as e:
        console.warn(f"Could not restart {service}: {e}")
        return 127

    if result.returncode != 0:
        console.warn(f"systemctl restart {service} exited with status {result.returncode}")
    return result.returncode
