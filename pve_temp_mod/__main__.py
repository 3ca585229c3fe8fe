import sys

from pve_temp_mod.installer import main


if __name__ == "__main__":
    sys.exit(main())
