"""
PVE Temperature Mod - Patch Generator
Builds the Perl statement for Nodes.pm and the StatusView items for pvemanagerlib.js

Nothing here touches the disk. Item blocks are returned without base
indentation (one tab per nesting level); the applier indents them to match
the line they are inserted after.
"""

import json
import shlex
from string import Template
from typing import List

from pve_temp_mod.core.config_manager import ModConfig
from pve_temp_mod.models.sensor_model import SensorProfile


# Field of the node status response that carries the raw sensor JSON
THERMAL_STATE_FIELD = "thermalstate"

DRIVE_ADDRESS_PREFIX = "drivetemp-scsi-"
DRIVE_SENSOR_NAME = "temp1"
NVME_ADDRESS_PREFIX = "nvme-pci-"
NVME_SENSOR_NAME = "Composite"


class _JsTemplate(Template):
    # JavaScript template literals already use ${...}
    delimiter = "@"


CPU_ITEM_TEMPLATE = _JsTemplate(r"""{
	itemId: 'thermalCpu',
	colspan: 1,
	printBar: false,
	title: gettext('CPU Thermal State'),
	iconCls: 'fa fa-fw fa-thermometer-half',
	textField: '@field',
	renderer: function(value) {
		// sensors configuration
		const cpuAddress = @cpu_address;
		const cpuItemPrefix = @cpu_item_prefix;
		const cpuTempCaption = @cpu_temp_caption;
		// display configuration
		const itemsPerRow = @items_per_row;
		// ---
		let objValue;
		try {
			objValue = JSON.parse(value);
		} catch(e) {
			return 'N/A';
		}
		if (objValue && Object.prototype.hasOwnProperty.call(objValue, cpuAddress)) {
			const items = objValue[cpuAddress],
				itemKeys = Object.keys(items).filter(item => { return String(item).startsWith(cpuItemPrefix); });
			let temps = [];
			itemKeys.forEach((coreKey) => {
				try {
					Object.keys(items[coreKey]).forEach((secondLevelKey) => {
						if (secondLevelKey.includes('_input')) {
							let tempStr = '';
							let temp = items[coreKey][secondLevelKey];
							let index = coreKey.match(/\S+\s*(\d+)/);
							if (index !== null && index.length > 1) {
								index = index[1];
								tempStr = `${cpuTempCaption}&nbsp;${index}:&nbsp;${temp}&deg;C`;
							} else {
								tempStr = `${cpuTempCaption}:&nbsp;${temp}&deg;C`;
							}
							temps.push(tempStr);
						}
					});
				} catch(e) { /*_*/ }
			});
			const result = temps.map((strTemp, index, arr) => { return strTemp + (index + 1 < arr.length ? ((index + 1) % itemsPerRow === 0 ? '<br>' : ' | ') : ''); });
			if (result.length > 0) {
				return result.join('');
			}
		}
		return 'N/A';
	}
},""")


DRIVE_ITEM_TEMPLATE = _JsTemplate(r"""{
	itemId: '@item_id',
	colspan: 1,
	printBar: false,
	title: gettext('@title'),
	iconCls: 'fa fa-fw fa-thermometer-half',
	textField: '@field',
	renderer: function(value) {
		// sensors configuration
		const addressPrefix = @address_prefix;
		const sensorName = @sensor_name;
		// display configuration
		const itemsPerRow = @items_per_row;
		// ---
		let objValue;
		try {
			objValue = JSON.parse(value) || {};
		} catch(e) {
			return 'N/A';
		}
		const drvKeys = Object.keys(objValue).filter(item => String(item).startsWith(addressPrefix)).sort();
		let temps = [];
		drvKeys.forEach((drvKey, index) => {
			try {
				Object.keys(objValue[drvKey][sensorName]).forEach((secondLevelKey) => {
					if (secondLevelKey.includes('_input')) {
						let temp = objValue[drvKey][sensorName][secondLevelKey];
						temps.push(`Drive&nbsp;${index + 1}:&nbsp;${temp}&deg;C`);
					}
				});
			} catch(e) { /*_*/ }
		});
		const result = temps.map((strTemp, index, arr) => { return strTemp + (index + 1 < arr.length ? ((index + 1) % itemsPerRow === 0 ? '<br>' : ' | ') : ''); });
		return result.length > 0 ? result.join('') : 'N/A';
	}
},""")


SPACER_ITEM = """{
	xtype: 'box',
	colspan: 1,
	padding: '0 0 20 0',
},"""


def js_string(value: str) -> str:
    """Quote a value as a JavaScript string literal"""
    return json.dumps(value)


def generate_backend_statement(config: ModConfig) -> str:
    """Perl statement that stores the sensor JSON on the node status response"""
    return f"$res->{{{THERMAL_STATE_FIELD}}} = `{shlex.join(config.sensors_command)}`;"


def generate_cpu_item(profile: SensorProfile, config: ModConfig) -> str:
    return CPU_ITEM_TEMPLATE.substitute(
        field=THERMAL_STATE_FIELD,
        cpu_address=js_string(profile.cpu_address),
        cpu_item_prefix=js_string(profile.cpu_item_prefix),
        cpu_temp_caption=js_string(profile.cpu_temp_caption),
        items_per_row=config.cpu_items_per_row,
    )


def generate_hdd_item(config: ModConfig) -> str:
    return DRIVE_ITEM_TEMPLATE.substitute(
        item_id="thermalHdd",
        title="HDD/SSD Thermal State",
        field=THERMAL_STATE_FIELD,
        address_prefix=js_string(DRIVE_ADDRESS_PREFIX),
        sensor_name=js_string(DRIVE_SENSOR_NAME),
        items_per_row=config.hdd_items_per_row,
    )


def generate_nvme_item(config: ModConfig) -> str:
    return DRIVE_ITEM_TEMPLATE.substitute(
        item_id="thermalNvme",
        title="NVMe Thermal State",
        field=THERMAL_STATE_FIELD,
        address_prefix=js_string(NVME_ADDRESS_PREFIX),
        sensor_name=js_string(NVME_SENSOR_NAME),
        items_per_row=config.nvme_items_per_row,
    )


def generate_ui_items(profile: SensorProfile, config: ModConfig) -> List[str]:
    """
    Build the StatusView items in display order

    Order is CPU, HDD/SSD, NVMe, then a spacer box when both drive kinds are
    shown so the two column table stays balanced.

    Returns:
        List of item blocks
    """
    items = [generate_cpu_item(profile, config)]

    if profile.hdd_enabled:
        items.append(generate_hdd_item(config))

    if profile.nvme_enabled:
        items.append(generate_nvme_item(config))

    if profile.hdd_enabled and profile.nvme_enabled:
        items.append(SPACER_ITEM)

    return items
