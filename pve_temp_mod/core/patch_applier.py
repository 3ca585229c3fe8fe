"""
PVE Temperature Mod - Patch Applier
Applies the generated snippets to Nodes.pm and pvemanagerlib.js

Both files are patched independently. Each one is skipped when its guard
pattern is already present, and backed up right before it is first written.
"""

import re
from typing import List, Optional

from pve_temp_mod.core import console
from pve_temp_mod.core.backup_manager import BackupManager
from pve_temp_mod.core.config_manager import ModConfig
from pve_temp_mod.core.patch_generator import (
    THERMAL_STATE_FIELD,
    generate_backend_statement,
    generate_ui_items,
)
from pve_temp_mod.models.patch_model import (
    FilePatch,
    InsertOperation,
    SubstituteOperation,
    Substitution,
)
from pve_temp_mod.models.sensor_model import SensorProfile


# ==================== ANCHORS ====================

BACKEND_GUARD = re.escape(f"$res->{{{THERMAL_STATE_FIELD}}}")
BACKEND_ANCHOR = re.escape("my $dinfo = df('/', 1);")

UI_GUARD = r"itemId: 'thermal[A-Za-z0-9]*'"
STATUS_VIEW_ANCHOR = re.escape("Ext.define('PVE.node.StatusView'")
ITEMS_ANCHOR = r"items:"
SWAP_ITEM_ANCHOR = r"swap"
BLOCK_END_ANCHOR = r"\},"


# ==================== PATCH DEFINITIONS ====================

def build_backend_patch(config: ModConfig) -> FilePatch:
    """Store the sensor output on the status response, right before the disk usage info"""
    return FilePatch(
        label="Nodes.pm",
        path=config.nodes_pm_path,
        guard=BACKEND_GUARD,
        operations=[
            InsertOperation(
                name=f"{THERMAL_STATE_FIELD} field",
                anchors=(BACKEND_ANCHOR,),
                payload=[generate_backend_statement(config), ""],
                position="before",
            ),
        ],
    )


def build_ui_patch(profile: SensorProfile, config: ModConfig) -> FilePatch:
    """Widen the node StatusView and add the thermal items after the swap item"""
    payload = "\n".join(generate_ui_items(profile, config)).split("\n")

    return FilePatch(
        label="pvemanagerlib.js",
        path=config.pvemanagerlib_js_path,
        guard=UI_GUARD,
        operations=[
            SubstituteOperation(
                name="StatusView layout",
                scope_start=STATUS_VIEW_ANCHOR,
                scope_end=BLOCK_END_ANCHOR,
                substitutions=[
                    Substitution(r"(bodyPadding:) '[^']*'", rf"\1 '{config.body_padding}'"),
                    Substitution(r"\bheight: [0-9]+", rf"minHeight: {config.min_height},\nflex: 1"),
                    Substitution(r"(tableAttrs:.*$)", r"trAttrs: { valign: 'top' },\n\1"),
                ],
            ),
            InsertOperation(
                name="thermal items",
                anchors=(STATUS_VIEW_ANCHOR, ITEMS_ANCHOR, SWAP_ITEM_ANCHOR, BLOCK_END_ANCHOR),
                payload=payload,
                position="after",
            ),
        ],
    )


# ==================== APPLYING ====================

def apply_operations(text: str, operations) -> Optional[str]:
    """
    Run the operations over text

    Returns:
        Patched text, or None when an insertion anchor was not found or
        nothing changed
    """
    newline = "\r\n" if "\r\n" in text else "\n"
    lines: List[str] = text.split(newline)
    changed = False

    for operation in operations:
        if operation.apply(lines):
            changed = True
        elif isinstance(operation, InsertOperation):
            console.warn(f"Could not find where to add the {operation.name}.")
            return None
        else:
            console.warn(f"Could not apply the {operation.name} changes.")

    return newline.join(lines) if changed else None


def apply_patch(patch: FilePatch, backups: BackupManager, timestamp: str) -> bool:
    """
    Apply one FilePatch to its file

    Returns:
        True if the file was written
    """
    with open(patch.path, 'r', encoding='utf-8', newline='') as f:
        text = f.read()

    if patch.is_applied(text):
        console.warn(f"Temperature mod already applied to \"{patch.path}\".")
        return False

    patched = apply_operations(text, patch.operations)
    if patched is None:
        console.warn(f"\"{patch.path}\" was left unchanged.")
        return False

    if backups.create_backup(patch.path, timestamp) is None:
        console.warn(f"Not patching \"{patch.path}\" without a backup of its own.")
        return False

    with open(patch.path, 'w', encoding='utf-8', newline='') as f:
        f.write(patched)

    console.ok(f"Patched {patch.label} at \"{patch.path}\".")
    return True


def apply_patches(profile: SensorProfile, config: ModConfig, backups: BackupManager, timestamp: str) -> bool:
    """
    Patch the backend handler and the UI definition

    Returns:
        True if at least one file was written
    """
    backend_written = apply_patch(build_backend_patch(config), backups, timestamp)
    ui_written = apply_patch(build_ui_patch(profile, config), backups, timestamp)

    if ui_written:
        console.msg(f"New temperature display items added to the summary panel in "
                    f"\"{config.pvemanagerlib_js_path}\".")

    return backend_written or ui_written
