import pytest

SUBMIT_CANCEL_XML = """<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>
<hierarchy rotation="0">
  <node index="0" text="" resource-id="" class="android.widget.FrameLayout" clickable="false" enabled="true" bounds="[0,0][1080,2400]">
    <node index="0" text="Submit" resource-id="com.example:id/submit" class="android.widget.Button" clickable="true" enabled="true" bounds="[100,200][300,260]" />
    <node index="1" text="Cancel" resource-id="com.example:id/cancel" class="android.widget.Button" clickable="false" enabled="false" bounds="[400,200][600,260]" />
  </node>
</hierarchy>
"""


@pytest.fixture
def submit_cancel_xml():
    return SUBMIT_CANCEL_XML
