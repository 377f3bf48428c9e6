from clawdroid.tools.android.adb import DeviceScreen

__all__ = ["DeviceScreen"]
