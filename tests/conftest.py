import os
import stat
import sys

import pytest

import trailer

FAKE_OBJCOPY = """#!{python}
import shutil, sys
# invoked as: <tool> -O binary <input> <output>
if sys.argv[1:3] != ["-O", "binary"]:
    sys.exit("bad arguments")
shutil.copyfile(sys.argv[3], sys.argv[4])
"""

FAILING_OBJCOPY = """#!{python}
import sys
sys.stderr.write("not an ELF file\\n")
sys.exit(1)
"""


def _script(path, text):
    path.write_text(text.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return str(path)


@pytest.fixture
def fake_objcopy(tmp_path):
    """An objcopy stand-in that copies its input to its output unchanged."""
    if os.name == "nt":
        pytest.skip("shebang scripts are not executable on Windows")
    return _script(tmp_path / "fake-objcopy", FAKE_OBJCOPY)


@pytest.fixture
def failing_objcopy(tmp_path):
    if os.name == "nt":
        pytest.skip("shebang scripts are not executable on Windows")
    return _script(tmp_path / "failing-objcopy", FAILING_OBJCOPY)


@pytest.fixture
def raw_image():
    return b"\x10\x20\x30\x40" * 64 + trailer.magic_bytes()


SILENT_OBJCOPY = """#!{python}
import sys
sys.exit(0)
"""


@pytest.fixture
def silent_objcopy(tmp_path):
    """An objcopy stand-in that succeeds without writing its output file."""
    if os.name == "nt":
        pytest.skip("shebang scripts are not executable on Windows")
    return _script(tmp_path / "silent-objcopy", SILENT_OBJCOPY)
