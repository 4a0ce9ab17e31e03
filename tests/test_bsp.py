import struct

import pytest

from hltools.bsp import (
    BSPVERSION,
    BspFile,
    ClipNode,
    Contents,
    Edge,
    Face,
    Leaf,
    LumpType,
    Model,
    Node,
    Plane,
    TexInfo,
    Vertex,
    compress_vis,
    decompress_vis,
    fast_checksum,
)
from hltools.common import ToolError

HEADER_SIZE = 4 + 8 * 15


def _sample() -> BspFile:
    return BspFile(
        models=[Model((-1.0, -2.0, -3.0), (1.0, 2.0, 3.0), (0.0, 0.0, 0.0), (0, 1, 2, 3), 5, 0, 2)],
        vertexes=[Vertex((0.0, 0.0, 0.0)), Vertex((64.0, 0.5, -16.0))],
        planes=[Plane((1.0, 0.0, 0.0), 32.0, 0), Plane((0.0, 0.0, 1.0), -8.0, 2)],
        leafs=[
            Leaf(int(Contents.SOLID), -1),
            Leaf(int(Contents.EMPTY), 0, (-16, -16, -16), (16, 16, 16), 0, 2, (1, 2, 3, 4)),
        ],
        nodes=[Node(0, (-1, -2), (-16, -16, -16), (16, 16, 16), 0, 2)],
        texinfo=[TexInfo(((1.0, 0.0, 0.0, 0.0), (0.0, -1.0, 0.0, 0.0)), 0, 0)],
        clipnodes=[ClipNode(1, (int(Contents.EMPTY), int(Contents.SOLID)))],
        faces=[Face(0, 1, 0, 3, 0, (0, 255, 255, 255), -1)],
        marksurfaces=[0, 1],
        surfedges=[1, -2, 3],
        edges=[Edge((0, 0)), Edge((0, 1)), Edge((1, 0))],
        texdata=b"\x00\x00\x00\x00",
        visdata=b"\x03\x00\x02",
        lightdata=b"\x10\x20\x30",
        entdata=b'{\n"classname" "worldspawn"\n}\n\x00',
    )


def test_round_trip_through_bytes():
    bsp = _sample()
    assert BspFile.from_bytes(bsp.to_bytes()) == bsp


def test_round_trip_through_file(tmp_path):
    bsp = _sample()
    path = tmp_path / "map.bsp"
    bsp.write(str(path))
    assert BspFile.load(str(path)) == bsp


def test_header_version_and_first_lump_offset():
    data = _sample().to_bytes()
    fields = struct.unpack_from("<i30i", data)
    assert fields[0] == BSPVERSION
    # planes are written first, straight after the header
    assert fields[1 + 2 * LumpType.PLANES] == HEADER_SIZE
    assert fields[2 + 2 * LumpType.PLANES] == 2 * 20


def test_lumps_are_four_byte_aligned_with_exact_lengths():
    bsp = _sample()
    data = bsp.to_bytes()
    fields = struct.unpack_from("<i30i", data)
    for kind in LumpType:
        assert fields[1 + 2 * kind] % 4 == 0
    assert fields[2 + 2 * LumpType.LIGHTING] == len(bsp.lightdata)
    assert len(data) % 4 == 0


def test_empty_file_round_trip():
    assert BspFile.from_bytes(BspFile().to_bytes()) == BspFile()


def test_wrong_version_raises():
    data = bytearray(_sample().to_bytes())
    struct.pack_into("<i", data, 0, 29)
    with pytest.raises(ToolError, match="version 29"):
        BspFile.from_bytes(bytes(data))


def test_odd_lump_size_raises():
    data = bytearray(_sample().to_bytes())
    struct.pack_into("<i", data, 4 + 8 * LumpType.PLANES + 4, 21)
    with pytest.raises(ToolError, match="odd lump size"):
        BspFile.from_bytes(bytes(data))


def test_truncated_header_raises():
    with pytest.raises(ToolError):
        BspFile.from_bytes(b"\x1e\x00\x00\x00")


def test_lump_beyond_end_raises():
    data = bytearray(_sample().to_bytes())
    struct.pack_into("<i", data, 4 + 8 * LumpType.ENTITIES + 4, 10 ** 6)
    with pytest.raises(ToolError):
        BspFile.from_bytes(bytes(data))


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(ToolError):
        BspFile.load(str(tmp_path / "absent.bsp"))


def test_fast_checksum_empty_is_zero():
    assert fast_checksum(b"") == 0


def test_fast_checksum_sign_extends_bytes():
    assert fast_checksum(b"\xff") == -1


def test_fast_checksum_stays_in_int32_range():
    value = fast_checksum(bytes(range(256)) * 4)
    assert -(2 ** 31) <= value < 2 ** 31


def test_checksums_match_lump_bytes():
    bsp = _sample()
    data = bsp.to_bytes()
    fields = struct.unpack_from("<i30i", data)
    ofs = fields[1 + 2 * LumpType.MODELS]
    length = fields[2 + 2 * LumpType.MODELS]
    sums = bsp.checksums()
    assert sums["models"] == fast_checksum(data[ofs : ofs + length])
    assert sums["visdata"] == fast_checksum(bsp.visdata)
    assert len(sums) == 15


def test_texdata_checksum_covers_edge_count_bytes():
    bsp = _sample()
    bsp.texdata = b"\x01\x02\x03\x04\x05\x06"
    assert bsp.checksums()["texdata"] == fast_checksum(b"\x01\x02\x03")


def test_compress_vis_zero_run():
    assert compress_vis(b"\x00\x00\x00\x05", 32) == b"\x00\x03\x05"


def test_compress_vis_caps_runs_at_255():
    packed = compress_vis(bytes(300), 300 * 8)
    assert packed[:2] == b"\x00\xff"
    assert decompress_vis(packed, 300 * 8) == bytes(300)


@pytest.mark.parametrize(
    "row",
    [b"\x01\x02\x03", b"\x00", b"\x00\x00\x07\x00\x00\x00\x09", bytes(10), b"\xff" * 5],
)
def test_vis_round_trip(row):
    numleafs = len(row) * 8
    assert decompress_vis(compress_vis(row, numleafs), numleafs) == row


def test_compress_vis_uses_only_row_length():
    assert decompress_vis(compress_vis(b"\x01\x02\x03\x04", 9), 9) == b"\x01\x02"


def test_decompress_vis_truncated_raises():
    with pytest.raises(ToolError):
        decompress_vis(b"\x01", 16)


def test_usage_report_lines():
    bsp = _sample()
    report = bsp.usage_report()
    lines = report.splitlines()
    assert lines[1] == "Object names  Objects/Maxobjs  Memory / Maxmem  Fullness"
    assert lines[3].startswith("models")
    assert any(line.startswith("entdata") and "[variable]" in line for line in lines)
    assert lines[-1].startswith("=== Total BSP file data space used: ")


def test_usage_report_total_counts_lump_bytes():
    bsp = _sample()
    lumps_size = len(bsp.to_bytes())
    total = int(bsp.usage_report().splitlines()[-1].split(":")[1].split()[0])
    assert 0 < total <= lumps_size


def test_usage_report_flags_full_arrays():
    bsp = BspFile(models=[Model()] * 390)
    models_line = bsp.usage_report().splitlines()[3]
    assert models_line.endswith("VERY FULL!")
    assert "390/400" in models_line.replace(" ", "")


def test_contents_written_with_values_fixed_by_format():
    bsp = BspFile(
        leafs=[Leaf(int(Contents.SOLID), -1)],
        clipnodes=[ClipNode(0, (int(Contents.EMPTY), int(Contents.SOLID)))],
    )
    data = bsp.to_bytes()
    fields = struct.unpack_from("<i30i", data)
    leaf_ofs = fields[1 + 2 * 10]
    assert struct.unpack_from("<i", data, leaf_ofs)[0] == -2
    clip_ofs = fields[1 + 2 * 9]
    assert struct.unpack_from("<ihh", data, clip_ofs) == (0, -1, -2)
    models_field = fields[2 + 2 * 14]
    assert models_field == 0