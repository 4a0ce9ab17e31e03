import pytest

from hltools.common import ToolError
from hltools.wad import TYP_LUMPY, WadReader, WadWriter, cleanup_name


@pytest.fixture
def wad_path(tmp_path):
    path = str(tmp_path / "test.wad")
    writer = WadWriter(path)
    writer.add_lump("first", b"hello", TYP_LUMPY, 0)
    writer.add_lump("Second", b"\x01\x02\x03")
    writer.close(True)
    return path


def test_cleanup_name_pads_and_uppercases():
    assert cleanup_name("abc") == b"ABC" + b"\0" * 13


def test_cleanup_name_truncates():
    assert cleanup_name("a" * 20) == b"A" * 16


def test_round_trip(wad_path):
    with WadReader(wad_path) as reader:
        assert [lump.name for lump in reader.lumps] == ["FIRST", "SECOND"]
        assert reader.load_lump_name("first") == b"hello"
        assert reader.read_lump(1) == b"\x01\x02\x03"
        assert reader.lump_length(0) == 5
        assert reader.lumps[0].type == TYP_LUMPY


def test_lookup_case_insensitive(wad_path):
    with WadReader(wad_path) as reader:
        assert reader.check_num_for_name("sEcOnD") == 1
        assert reader.check_num_for_name("third") is None


def test_get_num_for_missing_name_raises(wad_path):
    with WadReader(wad_path) as reader:
        with pytest.raises(ToolError):
            reader.get_num_for_name("nothere")


def test_lump_number_out_of_range(wad_path):
    with WadReader(wad_path) as reader:
        with pytest.raises(ToolError):
            reader.lump_length(2)
        with pytest.raises(ToolError):
            reader.read_lump(5)


def test_header_identification(tmp_path, wad_path):
    with open(wad_path, "rb") as handle:
        assert handle.read(4) == b"WAD3"
    path = str(tmp_path / "two.wad")
    with WadWriter(path) as writer:
        writer.add_lump("x", b"y")
    with open(path, "rb") as handle:
        assert handle.read(4) == b"WAD3"
    path2 = str(tmp_path / "wad2.wad")
    writer = WadWriter(path2)
    writer.close(False)
    with WadReader(path2) as reader:
        assert reader.identification == "WAD2"
        assert reader.lumps == []


def test_big_endian_header(tmp_path):
    path = str(tmp_path / "big.wad")
    writer = WadWriter(path, bigendian=True)
    writer.add_lump("a", b"z")
    writer.close(True)
    with open(path, "rb") as handle:
        data = handle.read()
    assert data[4:8] == (1).to_bytes(4, "big")


def test_bad_id_raises(tmp_path):
    path = tmp_path / "bad.wad"
    path.write_bytes(b"PACK" + bytes(8))
    with pytest.raises(ToolError):
        WadReader(str(path))


def test_missing_file_raises(tmp_path):
    with pytest.raises(ToolError):
        WadReader(str(tmp_path / "missing.wad"))