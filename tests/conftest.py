"""pytest configuration for svxstream tests."""

import pytest

from svxstream.config import SetupPaths

DARKICE_CFG = """\
[icecast2-0]
server          = localhost
port            = 8000
password = source
mountPoint      = stream
name            = callsign Repeater
description     = Live TX audio from callsign
url             = your_domain
"""

SVXLINK_CONF = """\
[GLOBAL]
LOGICS=SimplexLogic
CALLSIGN = MB7ABC

[SimplexLogic]
TYPE=Simplex
RX=Rx1
TX=Tx1

[RepeaterLogic]
TYPE=Repeater
TX = Tx1

[TxStream]
TYPE=Local
AUDIO_DEV=alsa:plughw:Loopback,0

[Tx1]
TYPE=Local
"""

ICECAST_XML = """\
<icecast>
    <authentication>
        <source-password>hackme</source-password>
        <relay-password>relaypw</relay-password>
        <admin-password>adminpw</admin-password>
    </authentication>
</icecast>
"""


@pytest.fixture
def paths(tmp_path) -> SetupPaths:
    """Default appliance layout rooted in a temporary directory (all files absent)."""
    p = SetupPaths.under(tmp_path)
    for d in (p.darkice_cfg.parent, p.svxlink_conf.parent, p.icecast_xml.parent):
        d.mkdir(parents=True, exist_ok=True)
    return p


@pytest.fixture
def populated(paths) -> SetupPaths:
    """Layout with freshly installed, unpatched configs."""
    paths.darkice_cfg.write_text(DARKICE_CFG)
    paths.svxlink_conf.write_text(SVXLINK_CONF)
    paths.icecast_xml.write_text(ICECAST_XML)
    web = paths.icecast_web_dir
    web.mkdir(parents=True)
    (web / "status.xsl").write_text("<title>Icecast2 Status</title>\n<h1>Icecast2</h1>\n")
    (web / "server_version.xsl").write_text("<p>Powered by Icecast2</p>\n")
    (web / "style.css").write_text("/* Icecast2 */\n")
    return paths

