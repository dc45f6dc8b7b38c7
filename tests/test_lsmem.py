import pytest

from ulutils.lsmem import (
    Summary,
    TableRow,
    build_parser,
    create_rows,
    format_json,
    format_pairs,
    format_raw,
    format_summary,
    format_table,
    main,
)
from ulutils.lsmem_blocks import (
    Column,
    MemoryBlock,
    MemoryInfo,
    MemoryState,
    ZoneId,
)

MEMORY_BLOCK_IDS = [
    0, 1, 100, 101, 102, 103, 104, 105, 106, 107, 108, 109, 110, 111, 112, 113, 114, 115, 116, 117,
    118, 119, 120, 121, 122, 123, 124, 125, 126, 127, 128, 129, 130, 131, 132, 133, 134, 135, 136,
    137, 138, 139, 140, 141, 142, 143, 144, 145, 146, 147, 148, 149, 2, 3, 32, 33, 34, 35, 36, 37,
    38, 39, 4, 40, 41, 42, 43, 44, 45, 46, 47, 48, 49, 5, 50, 51, 52, 53, 54, 55, 56, 57, 58, 59,
    6, 60, 61, 62, 63, 64, 65, 66, 67, 68, 69, 70, 71, 72, 73, 74, 75, 76, 77, 78, 79, 80, 81, 82,
    83, 84, 85, 86, 87, 88, 89, 90, 91, 92, 93, 94, 95, 96, 97, 98, 99,
]

FIRST_RANGE = "0x0000000000000000-0x0000000037ffffff"
SECOND_RANGE = "0x0000000100000000-0x00000004afffffff"


@pytest.fixture
def sysroot(tmp_path):
    sysmem = tmp_path / "sys" / "devices" / "system" / "memory"
    sysmem.mkdir(parents=True)
    (sysmem / "block_size_bytes").write_text("8000000\n")
    for i in MEMORY_BLOCK_IDS:
        block_dir = sysmem / f"memory{i}"
        block_dir.mkdir()
        (block_dir / "removable").write_text("1\n")
        (block_dir / "state").write_text("online\n")
        if i == 0:
            zone = "none\n"
        elif 1 <= i <= 6:
            zone = "DMA32\n"
        else:
            zone = "Normal\n"
        (block_dir / "valid_zones").write_text(zone)
        node_dir = block_dir / "node0"
        node_dir.mkdir()
        (node_dir / ".gitkeep").write_text("")
    return str(tmp_path)


def run(capsys, sysroot, *args):
    code = main(["-s", sysroot, *args])
    captured = capsys.readouterr()
    assert captured.err == ""
    assert code == 0
    return captured.out


def test_invalid_arg():
    with pytest.raises(SystemExit) as exc:
        main(["--definitely-invalid"])
    assert exc.value.code == 1


@pytest.mark.parametrize("other", ["-J", "-P", "-r"])
def test_summary_conflicts(other):
    with pytest.raises(SystemExit) as exc:
        main(["--summary", other])
    assert exc.value.code == 1


def test_all_conflicts_with_split():
    with pytest.raises(SystemExit) as exc:
        main(["-a", "-S", "node"])
    assert exc.value.code == 1


def test_invalid_output_column():
    with pytest.raises(SystemExit) as exc:
        main(["-o", "nonsense"])
    assert exc.value.code == 1


def test_split_rejects_non_split_column():
    with pytest.raises(SystemExit) as exc:
        main(["-S", "size"])
    assert exc.value.code == 1


def test_missing_sysroot_fails(tmp_path, capsys):
    assert main(["-s", str(tmp_path / "absent")]) == 1
    assert "lsmem:" in capsys.readouterr().err


def test_columns_json(capsys, sysroot):
    out = run(capsys, sysroot, "-o", "block,size", "-J")
    assert out == (
        "{\n"
        '   "memory": [\n'
        "      {\n"
        '         "block": "0-6",\n'
        '         "size": "896M"\n'
        "      },{\n"
        '         "block": "32-149",\n'
        '         "size": "14.8G"\n'
        "      }\n"
        "   ]\n"
        "}\n"
    )


def test_columns_pairs(capsys, sysroot):
    out = run(capsys, sysroot, "-o", "block,size", "-P")
    assert out == 'BLOCK="0-6" SIZE="896M"\nBLOCK="32-149" SIZE="14.8G"\n'


def test_columns_raw(capsys, sysroot):
    out = run(capsys, sysroot, "-o", "block,size", "-r")
    assert out == "BLOCK SIZE\n0-6 896M\n32-149 14.8G\n"


def test_columns_table(capsys, sysroot):
    out = run(capsys, sysroot, "-o", "block,size")
    lines = out.split("\n")
    assert lines[0] == " BLOCK  SIZE"
    assert lines[1] == "   0-6  896M"
    assert lines[2] == "32-149 14.8G"
    assert lines[3] == ""
    assert lines[4].startswith("Memory block size:")


def test_json_removable_is_boolean(capsys, sysroot):
    out = run(capsys, sysroot, "-J")
    assert '"removable": true' in out
    assert '"yes"' not in out
    assert f'"range": "{FIRST_RANGE}"' in out
    assert "Memory block size" not in out


def test_json_bytes(capsys, sysroot):
    out = run(capsys, sysroot, "-J", "-b")
    assert '"size": 939524096' in out


def test_json_all(capsys, sysroot):
    out = run(capsys, sysroot, "-J", "-a")
    assert out.count('"block":') == 125


def test_pairs(capsys, sysroot):
    out = run(capsys, sysroot, "-P")
    assert out.splitlines() == [
        f'RANGE="{FIRST_RANGE}" SIZE="896M" STATE="online" REMOVABLE="yes" BLOCK="0-6"',
        f'RANGE="{SECOND_RANGE}" SIZE="14.8G" STATE="online" REMOVABLE="yes" BLOCK="32-149"',
    ]


def test_pairs_all(capsys, sysroot):
    out = run(capsys, sysroot, "-P", "-a")
    lines = out.splitlines()
    assert len(lines) == 125
    assert lines[0].endswith('BLOCK="0"')
    assert lines[-1].endswith('BLOCK="149"')


def test_pairs_bytes(capsys, sysroot):
    out = run(capsys, sysroot, "-P", "-b")
    assert 'SIZE="939524096"' in out


def test_raw_noheadings(capsys, sysroot):
    out = run(capsys, sysroot, "-r", "-n")
    assert out.splitlines() == [
        f"{FIRST_RANGE} 896M online yes 0-6",
        f"{SECOND_RANGE} 14.8G online yes 32-149",
    ]


def test_raw(capsys, sysroot):
    out = run(capsys, sysroot, "-r")
    assert out.splitlines()[0] == "RANGE SIZE STATE REMOVABLE BLOCK"


def test_table(capsys, sysroot):
    out = run(capsys, sysroot)
    lines = out.split("\n")
    assert lines[0].split() == ["RANGE", "SIZE", "STATE", "REMOVABLE", "BLOCK"]
    assert lines[1] == FIRST_RANGE + " " + " 896M" + " " + "online" + " " + "      yes" + " " + "   0-6"
    assert lines[2] == SECOND_RANGE + " " + "14.8G" + " " + "online" + " " + "      yes" + " " + "32-149"
    assert lines[3] == ""
    assert lines[4:7] == [
        "Memory block size:       128M",
        "Total online memory:    15.6G",
        "Total offline memory:      0B",
    ]


def test_table_noheadings(capsys, sysroot):
    out = run(capsys, sysroot, "-n")
    assert out.split("\n")[0].startswith(FIRST_RANGE)


def test_table_all(capsys, sysroot):
    out = run(capsys, sysroot, "-a")
    table = out.split("\n\n")[0].splitlines()
    assert len(table) == 126


def test_table_bytes(capsys, sysroot):
    out = run(capsys, sysroot, "-b")
    assert "Memory block size:            134217728\n" in out
    assert "Total online memory:        16777216000\n" in out
    assert "Total offline memory:                 0\n" in out


def test_split_node(capsys, sysroot):
    out = run(capsys, sysroot, "-S", "node", "-P", "-o", "block")
    assert out == 'BLOCK="0-6"\nBLOCK="32-149"\n'


def test_split_zones(capsys, sysroot):
    out = run(capsys, sysroot, "-S", "zones", "-P", "-o", "block,zones")
    assert out == (
        'BLOCK="0" ZONES="None"\n'
        'BLOCK="1-6" ZONES="DMA32"\n'
        'BLOCK="32-149" ZONES="Normal"\n'
    )


def test_split_output_default(capsys, sysroot):
    out = run(capsys, sysroot, "-o", "block,size,zones,node", "-r", "-n")
    assert out.splitlines() == [
        "0 128M None 0",
        "1-6 768M DMA32 0",
        "32-149 14.8G Normal 0",
    ]


def test_split_state(capsys, sysroot):
    out = run(capsys, sysroot, "-S", "state", "-r", "-n", "-o", "block")
    assert out == "0-6\n32-149\n"


def test_summary_only(capsys, sysroot):
    out = run(capsys, sysroot, "--summary=only")
    assert out == (
        "Memory block size:       128M\n"
        "Total online memory:    15.6G\n"
        "Total offline memory:      0B\n"
    )


def test_summary_empty_means_only(capsys, sysroot):
    out = run(capsys, sysroot, "--summary")
    assert out.startswith("Memory block size:")
    assert FIRST_RANGE not in out


def test_summary_never(capsys, sysroot):
    out = run(capsys, sysroot, "--summary=never")
    assert "Memory block size" not in out
    assert out.count("\n") == 3


def test_summary_always(capsys, sysroot):
    out = run(capsys, sysroot, "--summary=always")
    assert "\n\nMemory block size:" in out
    assert FIRST_RANGE in out


def test_table_row_value():
    row = TableRow(range="r", size="s", block="b", zones="z")
    assert row.value(Column.RANGE) == "r"
    assert row.value(Column.ZONES) == "z"
    assert row.value(Column.NODE) == ""


def test_create_rows_unknown_state_and_zones():
    info = MemoryInfo(
        block_size=1024,
        blocks=[MemoryBlock(index=3, count=2, state=MemoryState.UNKNOWN,
                            zones=(ZoneId.NORMAL, ZoneId.UNKNOWN, ZoneId.MOVABLE),
                            removable=False, node=1)],
        have_nodes=True,
        have_zones=True,
    )
    (row,) = create_rows(info, in_bytes=True)
    assert row.state == "?"
    assert row.removable == "no"
    assert row.block == "3-4"
    assert row.size == "2048"
    assert row.zones == "Normal/Movable"
    assert row.node == "1"
    assert row.range == "0x0000000000000c00-0x00000000000013ff"


def test_create_rows_without_nodes_leaves_node_empty():
    info = MemoryInfo(block_size=1024, blocks=[MemoryBlock(index=0, node=5)])
    (row,) = create_rows(info, in_bytes=False)
    assert row.node == ""
    assert row.size == "1K"
    assert row.block == "0"


def test_format_table_empty_without_headings():
    assert format_table([], [Column.BLOCK], noheadings=True) == ""


def test_format_table_uses_width_hint():
    assert format_table([], [Column.SIZE, Column.RANGE], noheadings=False) == " SIZE RANGE\n"


def test_format_json_empty():
    assert format_json([], [Column.BLOCK], in_bytes=False) == '{\n   "memory": []\n}\n'


def test_format_pairs_and_raw():
    rows = [TableRow(block="7", size="1K")]
    assert format_pairs(rows, [Column.SIZE, Column.BLOCK]) == 'SIZE="1K" BLOCK="7"\n'
    assert format_raw(rows, [Column.BLOCK], noheadings=False) == "BLOCK\n7\n"


def test_format_summary_human():
    info = MemoryInfo(block_size=1 << 20, mem_online=3 << 20, mem_offline=0)
    assert format_summary(info, in_bytes=False).splitlines()[1] == "Total online memory:       3M"


def test_parser_summary_values():
    parser = build_parser()
    assert parser.parse_args(["--summary=ALWAYS"]).summary is Summary.ALWAYS
    assert parser.parse_args(["--summary"]).summary is Summary.ONLY
    assert parser.parse_args([]).summary is None


def test_parser_output_ignores_case():
    args = build_parser().parse_args(["-o", "Block,SIZE"])
    assert args.output == [Column.BLOCK, Column.SIZE]