import os
from pathlib import Path

import pytest

# screenwriter.main loads config at import time.
os.environ.setdefault(
    "SCREENWRITER_CONFIG", str(Path(__file__).resolve().parent.parent / "config.yaml")
)

SCREENPLAY = """Title: The Visit
Author: Jo

INT. KITCHEN - NIGHT

MARY enters, soaked.

MARY
Is he here?

TOM (O.S.)
Upstairs.

EXT. GARDEN - DAY

TOM digs.

TOM
Nothing here."""


@pytest.fixture
def screenplay():
    return SCREENPLAY
