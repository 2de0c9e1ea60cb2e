from pathlib import Path

import extgen


def _file(filename: str, line_count: int, function_count: int = 22) -> extgen.FileWriteResult:
    return extgen.FileWriteResult(
        filename=filename,
        path=Path("/tmp") / filename,
        line_count=line_count,
        byte_count=line_count * 10,
        function_count=function_count,
    )


def _summary() -> extgen.GenerationSummary:
    return extgen.GenerationSummary(
        package="org.ntakt",
        output_dir="/tmp/out",
        representation_count=12,
        containers=("RA", "RAI"),
        families=("Logical",),
        files=(
            _file("RandomAccessibleLogicalExtensions.kt", 1520),
            _file("RandomAccessibleIntervalLogicalExtensions.kt", 1520),
        ),
    )


def test_build_generation_summary_copies_pipeline_outputs(tmp_path: Path) -> None:
    config = extgen.GenerateConfig(("RAI",), ("arithmetic",), "org.ntakt", tmp_path)
    files = (_file("RandomAccessibleIntervalArithmeticExtensions.kt", 900, 20),)
    result = extgen.GenerationResult(output_dir=tmp_path, files=files)

    summary = extgen.build_generation_summary(config, extgen.default_registry(), result)

    assert summary.families == ("Arithmetic",)
    assert summary.containers == ("RAI",)
    assert summary.representation_count == 12
    assert summary.output_dir == str(tmp_path)
    assert summary.files == files


def test_format_generation_summary_sections() -> None:
    text = extgen.format_generation_summary(_summary())
    lines = text.splitlines()

    assert lines[0] == "ntakt extensions generated:"
    assert "  Package:          org.ntakt" in lines
    assert "  Representations:  12 (144 pairs per operator)" in lines
    assert "  Containers:       RA, RAI" in lines
    assert "  Families:         Logical" in lines
    assert "  Total: 3,040 lines across 2 files" in lines
    assert text.endswith("\n")
    assert not text.endswith("\n\n")


def test_format_generation_summary_file_rows_use_separators() -> None:
    text = extgen.format_generation_summary(_summary())

    row = next(line for line in text.splitlines() if "RandomAccessibleLogical" in line)
    assert row.split() == ["RandomAccessibleLogicalExtensions.kt", "22", "functions", "1,520", "lines"]
