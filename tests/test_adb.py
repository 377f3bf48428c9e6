import pytest

from clawdroid.tools.android import adb as adb_module
from clawdroid.tools.android.adb import DUMP_STRATEGIES, DeviceScreen
from tests.conftest import SUBMIT_CANCEL_XML


class FakeDevice:
    def __init__(self, responses=None, state="device"):
        self.responses = responses or {}
        self.state = state
        self.commands = []

    async def get_state(self):
        return self.state

    async def shell(self, command):
        self.commands.append(command)
        response = self.responses.get(command, "")
        if isinstance(response, Exception):
            raise response
        return response


@pytest.mark.asyncio
async def test_dump_falls_back_through_strategies():
    device = FakeDevice(
        {
            DUMP_STRATEGIES[0]: "ERROR: could not get idle state.",
            DUMP_STRATEGIES[1]: OSError("closed"),
            DUMP_STRATEGIES[2]: SUBMIT_CANCEL_XML + "UI hierchary dumped to: /dev/tty",
        }
    )
    screen = DeviceScreen(device=device)

    xml = await screen.dump_hierarchy()

    assert device.commands == DUMP_STRATEGIES
    assert xml.rstrip().endswith("</hierarchy>")


@pytest.mark.asyncio
async def test_dump_returns_none_when_all_strategies_fail():
    screen = DeviceScreen(device=FakeDevice())

    assert await screen.dump_hierarchy() is None


@pytest.mark.asyncio
async def test_snapshot_ranks_dumped_elements():
    screen = DeviceScreen(device=FakeDevice({DUMP_STRATEGIES[0]: SUBMIT_CANCEL_XML}))

    snapshot = await screen.snapshot(limit=1)

    assert [c.text for c in snapshot.compact] == ["Submit"]
    assert len(snapshot.elements) == 2


@pytest.mark.asyncio
async def test_snapshot_of_unreadable_screen_is_empty():
    snapshot = await DeviceScreen(device=FakeDevice()).snapshot()

    assert snapshot.compact == []


@pytest.mark.asyncio
async def test_foreground_app():
    output = (
        "  mCurrentFocus=Window{4f2a u0 com.android.settings/com.android.settings.Settings}\n"
        "  mFocusedApp=ActivityRecord{91c u0 com.android.settings/.Settings t12}\n"
    )
    device = FakeDevice({"dumpsys window windows | grep -E 'mCurrentFocus|mFocusedApp'": output})

    app = await DeviceScreen(device=device).get_foreground_app()

    assert app == {"packageName": "com.android.settings", "activity": "com.android.settings.Settings"}


@pytest.mark.asyncio
async def test_foreground_app_unknown():
    app = await DeviceScreen(device=FakeDevice()).get_foreground_app()

    assert app == {"packageName": "Unknown", "activity": "Unknown"}


@pytest.mark.asyncio
async def test_connect_rejects_offline_device(monkeypatch):
    async def fake_device(serial=None):
        return FakeDevice(state="offline")

    monkeypatch.setattr(adb_module.adb, "device", fake_device)

    with pytest.raises(ConnectionError, match="offline"):
        await DeviceScreen(serial="emulator-5554").connect()


@pytest.mark.asyncio
async def test_error_text_on_screen_does_not_reject_dump():
    xml = (
        '<hierarchy rotation="0"><node class="android.widget.TextView" text="ERROR 404" '
        'bounds="[0,0][100,40]" /></hierarchy>\nUI hierchary dumped to: /dev/tty'
    )
    device = FakeDevice({DUMP_STRATEGIES[0]: xml})

    snapshot = await DeviceScreen(device=device).snapshot()

    assert device.commands == DUMP_STRATEGIES[:1]
    assert [c.text for c in snapshot.compact] == ["ERROR 404"]
