# hltools

A Python library for reading, writing and manipulating the data files of
GoldSrc-era games and their map compilers: BSP maps, WAD archives, PAK
directories, 8-bit paletted images, Alias triangle files, and the geometry
that map tools work with. It has no dependencies beyond the standard library.

Errors in data or files raise `hltools.common.ToolError`.

## Modules

- `hltools.common` — path helpers (`default_extension`, `default_path`,
  `strip_filename`, `strip_extension`, `extract_file_path`,
  `extract_file_base`, `extract_file_extension`, `fix_slashes`,
  `expand_arg`), the script tokenizer `parse_token` (returns
  `(token, remainder)` or `None`), case-insensitive `strcasecmp` /
  `strncasecmp` and `check_parm`, number parsing (`parse_num` accepts `$hex`,
  `0xhex` or decimal; `parse_hex`), the 16-bit XMODEM CRC (`Crc16`, `crc16`),
  file helpers (`load_file`, `save_file`, `file_time`, `create_path`,
  `copy_file`), `ProjectPaths` for resolving script paths from the
  `QPROJECT` environment variable, and PAK directories (`read_pak_directory`
  returning `PakEntry` records, `list_pak` printing a listing).
- `hltools.mathlib` — vector, bounds, matrix and quaternion math on plain
  tuples: `dot_product`, `cross_product`, `vector_normalize` (returns the unit
  vector and the length), `clear_bounds`, `add_point_to_bounds`,
  `angle_matrix`, `angle_imatrix`, `concat_transforms`, `vector_rotate`,
  `vector_transform`, `angle_quaternion`, `quaternion_matrix`,
  `quaternion_slerp` and more. Functions return new tuples.
- `hltools.vector` — immutable `Vector` and `Vector2D` value types with
  arithmetic operators, `length`, `normalize`, `dot` and (for `Vector`)
  `cross`, `make_2d` and `length_2d`.
- `hltools.texture` — `TextureType`, `is_alpha_type` and `mipmap`, which
  halves an RGBA image by averaging 2x2 blocks.
- `hltools.polylib` — convex polygon `Winding`s: `Winding.base_for_plane`,
  `area`, `center`, `bounds`, `plane`, `remove_colinear_points`, `clip`
  (returns `(front, back)`, either may be `None`), `chop`, `check` and
  `on_plane_side` returning a `Side`.
- `hltools.threads` — `run_threads_on` runs `func(threadnum, dispatcher)` on
  each thread, with work numbers handed out by a `WorkDispatcher`;
  `run_threads_on_individual` calls `func(work)` once per work number. Both
  return the elapsed whole seconds and re-raise the first worker exception.
- `hltools.bsp` — `BspFile` decodes and encodes version 30 BSP files
  (`load`, `from_bytes`, `write`, `to_bytes`), returns lump checksums
  (`checksums`) and a usage table as a string (`usage_report`);
  `compress_vis` / `decompress_vis` handle run-length visibility rows and
  `fast_checksum` is the lump checksum.
- `hltools.entities` — `Entity` key/value pairs (`set_key_value`,
  `value_for_key`, `float_for_key`, `vector_for_key`) and
  `unparse_entities`, which builds the null-terminated entity lump text.
- `hltools.wad` — `WadReader` and `WadWriter` for WAD2/WAD3 archives, both
  usable as context managers, and `cleanup_name`.
- `hltools.trilib` — `load_triangle_list` / `parse_triangle_list` for Alias
  triangle files, giving `Triangle` records.
- `hltools.lbm` — `load_lbm`, `write_lbm`, `load_bmp`, `write_bmp` for 8-bit
  paletted images, returning `Image` records, and `rle_decompress` for
  ByteRun1 rows.

## Installing

    pip install .

## Examples

Load a map, show its lump usage and write it back:

    from hltools.bsp import BspFile

    bsp = BspFile.load("maps/example.bsp")
    print(bsp.usage_report())
    bsp.write("maps/example_copy.bsp")

Write and read a WAD:

    from hltools.wad import WadWriter, WadReader

    with WadWriter("textures.wad") as wad:
        wad.add_lump("brick1", b"\x00" * 64)

    with WadReader("textures.wad") as wad:
        data = wad.load_lump_name("BRICK1")

Clip a polygon:

    from hltools.polylib import Winding

    w = Winding.base_for_plane((0.0, 0.0, 1.0), 0.0)
    front, back = w.clip((1.0, 0.0, 0.0), 0.0)

Build entity text:

    from hltools.entities import Entity, unparse_entities

    worldspawn = Entity()
    worldspawn.set_key_value("classname", "worldspawn")
    text = unparse_entities([worldspawn])

## What it does not do

- There are no command-line programs; everything is used from Python.
- It does not parse entity lump text back into `Entity` objects; only
  `unparse_entities` is provided.
- `load_lbm` decodes PBM bodies only; ILBM bodies with rows raise
  `ToolError` because bit-plane decoding is not implemented.
- `WadWriter` stores lumps uncompressed whatever `compression` value is
  recorded for them, and `WadReader` returns lump bytes as stored.

## Running the tests

    pip install .[test]
    pytest