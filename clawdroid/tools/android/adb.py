"""
Device capture - Reads the accessibility dump and foreground app over ADB.
"""

import logging
from typing import Any, Dict, Optional

from async_adbutils import adb

from clawdroid import constants
from clawdroid.tools.filters import ScreenSnapshot, describe_screen
from clawdroid.tools.parsers.uiautomator_parser import strip_dump_banner

logger = logging.getLogger("clawdroid")

DUMP_STRATEGIES = [
    "uiautomator dump /dev/tty",
    "uiautomator dump --compressed /dev/tty",
    f"uiautomator dump {constants.DEVICE_DUMP_PATH} && cat {constants.DEVICE_DUMP_PATH}"
    f" && rm -f {constants.DEVICE_DUMP_PATH}",
]


class DeviceScreen:
    """Captures screen state from one Android device."""

    def __init__(self, serial: str | None = None, device: Any = None):
        """
        Args:
            serial: Device serial number (default: the only attached device)
            device: Already connected async_adbutils device, mostly for tests
        """
        self._serial = serial
        self.device = device

    async def connect(self) -> None:
        if self.device is not None:
            return
        self.device = await adb.device(serial=self._serial)
        state = await self.device.get_state()
        if state != "device":
            raise ConnectionError(f"Device is not online. State: {state}")

    async def dump_hierarchy(self) -> Optional[str]:
        """
        Get the raw uiautomator XML, trying each dump strategy in turn.

        Returns:
            XML text, or None when every strategy failed
        """
        await self.connect()
        for strategy in DUMP_STRATEGIES:
            try:
                output = await self.device.shell(strategy)
            except Exception as e:
                logger.debug(f"uiautomator strategy exception ({strategy}): {e}")
                continue

            # Only text ahead of the document counts; node text may say anything
            head = output.split("<", 1)[0]
            if "ERROR" in head or "could not get idle state" in head.lower():
                logger.debug(f"uiautomator strategy failed: {strategy}")
                continue

            output = strip_dump_banner(output)
            if "<hierarchy" in output or "<?xml" in output:
                logger.debug(f"uiautomator strategy succeeded: {strategy}")
                return output

        logger.warning("All uiautomator dump strategies failed")
        return None

    async def snapshot(self, limit: int = constants.DEFAULT_MAX_ELEMENTS) -> ScreenSnapshot:
        """Dump the screen and run it through extraction and ranking."""
        xml_content = await self.dump_hierarchy()
        return describe_screen(xml_content or "", limit)

    async def get_foreground_app(self) -> Dict[str, str]:
        """
        Read the focused package and activity from ``dumpsys window``.

        Returns:
            Dict with packageName and activity ("Unknown" when not found)
        """
        await self.connect()
        output = await self.device.shell(
            "dumpsys window windows | grep -E 'mCurrentFocus|mFocusedApp'"
        )
        # mCurrentFocus=Window{... com.example.app/com.example.app.MainActivity}
        for line in output.split("\n"):
            if "mCurrentFocus" not in line and "mFocusedApp" not in line:
                continue
            for part in line.split():
                pkg_act = part.strip("{}").strip()
                if "/" in pkg_act and "." in pkg_act:
                    package_name, activity = pkg_act.split("/", 1)
                    return {"packageName": package_name, "activity": activity}
        return {"packageName": "Unknown", "activity": "Unknown"}
