"""
PVE Temperature Mod
Adds CPU, NVMe and HDD/SSD temperatures to the Proxmox VE node summary panel

License: MIT
"""

__version__ = "1.0.0"
