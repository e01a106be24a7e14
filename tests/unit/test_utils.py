"""
Unit tests for utility functions
"""
import os
import zipfile
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from utils.helpers import (
    copy_all_artifacts,
    copy_selected_artifacts,
    extract_zip,
    format_age,
    list_folder_names,
    sanitize_name,
)
from utils.resources import (
    parse_cpu,
    parse_cpu_cores,
    parse_gpu_count,
    parse_memory,
    parse_memory_bytes,
    parse_whole_gpu,
    whole_cores,
    whole_gib,
)


class TestParseCpuCores:
    """Tests for parse_cpu_cores function"""

    def test_millicores(self):
        """Test CPU millicores parsing"""
        assert parse_cpu_cores("500m") == Decimal("0.5")
        assert parse_cpu_cores("250m") == Decimal("0.25")

    def test_whole_cores(self):
        """Test whole core parsing"""
        assert parse_cpu_cores("2") == 2
        assert parse_cpu_cores(4) == 4

    def test_empty_is_zero(self):
        """Test missing values count as zero"""
        assert parse_cpu_cores(None) == 0
        assert parse_cpu_cores("") == 0
        assert parse_cpu_cores("  ") == 0

    def test_invalid(self):
        """Test unparseable quantity"""
        with pytest.raises(ValueError, match="invalid resource quantity"):
            parse_cpu_cores("two")


class TestParseMemoryBytes:
    """Tests for parse_memory_bytes function"""

    def test_binary_suffixes(self):
        """Test Ki / Mi / Gi suffixes"""
        assert parse_memory_bytes("1024Ki") == 1024 * 1024
        assert parse_memory_bytes("512Mi") == 512 * 1024 ** 2
        assert parse_memory_bytes("4Gi") == 4 * 1024 ** 3

    def test_decimal_suffixes(self):
        """Test decimal memory units"""
        assert parse_memory_bytes("1G") == 10 ** 9
        assert parse_memory_bytes("500M") == 500 * 10 ** 6

    def test_plain_bytes(self):
        """Test plain byte counts"""
        assert parse_memory_bytes("1048576") == 1048576


class TestGpu:
    """Tests for GPU parsing"""

    def test_fractional_count_for_comparison(self):
        """Test fractional GPU counts are kept for comparisons"""
        assert parse_gpu_count("0.5") == Decimal("0.5")

    def test_whole_gpu(self):
        """Test whole GPU requests"""
        assert parse_whole_gpu("2") == 2
        assert parse_whole_gpu("") == 0

    def test_whole_gpu_rejects_fraction(self):
        """Test container GPU requests must be integers"""
        with pytest.raises(ValueError, match="GPU value must be an integer"):
            parse_whole_gpu("1.5")


class TestWholeUnits:
    """Tests for whole core / GiB conversion"""

    def test_whole_cores(self):
        """Test cores are truncated toward zero"""
        assert whole_cores(Decimal("3.9")) == 3
        assert whole_cores(Decimal("-0.5")) == 0
        assert whole_cores(Decimal("-1.5")) == -1

    def test_whole_gib(self):
        """Test bytes are truncated to GiB"""
        assert whole_gib(Decimal(-(1024 ** 3) // 2)) == 0
        assert whole_gib(Decimal(3 * 1024 ** 3 - 1)) == 2
        assert whole_gib(Decimal(8 * 1024 ** 3)) == 8


class TestMetricUnits:
    """Tests for metric display conversions"""

    def test_parse_cpu_millicores(self):
        """Test CPU usage conversion to millicores"""
        assert parse_cpu("100m") == 100
        assert parse_cpu("2") == 2000
        assert parse_cpu("1000000n") == 1
        assert parse_cpu("") == 0

    def test_parse_memory_mib(self):
        """Test memory usage conversion to MiB"""
        assert parse_memory("256Mi") == 256
        assert parse_memory("1Gi") == 1024
        assert parse_memory("") == 0


class TestExtractZip:
    """Tests for extract_zip function"""

    def test_extracts_files(self, tmp_path):
        """Test regular archive extraction"""
        archive = tmp_path / "bundle.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("manifest.yaml", "name: demo\n")
            zf.writestr("assets/logo.png", b"png")

        files = extract_zip(str(archive), str(tmp_path / "out"))

        names = sorted(os.path.relpath(f, tmp_path / "out") for f in files)
        assert names == [os.path.join("assets", "logo.png"), "manifest.yaml"]
        assert (tmp_path / "out" / "manifest.yaml").read_text() == "name: demo\n"

    def test_rejects_zip_slip(self, tmp_path):
        """Test entries escaping the destination are rejected"""
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../escape.txt", "x")

        with pytest.raises(ValueError, match="illegal file path"):
            extract_zip(str(archive), str(tmp_path / "out"))
        assert not (tmp_path / "escape.txt").exists()


class TestCopyArtifacts:
    """Tests for artifact copy helpers"""

    @pytest.fixture
    def registry(self, tmp_path):
        src = tmp_path / "src"
        (src / "weights").mkdir(parents=True)
        (src / "weights" / "model.bin").write_bytes(b"w")
        (src / "setup.sh").write_text("pip install x")
        (src / "notes.txt").write_text("ignore")
        return src

    def test_copy_selected_by_prefix(self, registry, tmp_path):
        """Test only selected prefixes are copied and scripts renamed"""
        dst = tmp_path / "dst"
        copied = copy_selected_artifacts(str(registry), str(dst), "mnist1", ["weights", "setup.sh"])

        assert copied is True
        assert (dst / "mnist1" / "weights" / "model.bin").exists()
        assert (dst / "mnist1" / "dependency.sh").read_text() == "pip install x"
        assert not (dst / "mnist1" / "notes.txt").exists()

    def test_copy_selected_nothing_matched(self, registry, tmp_path):
        """Test no matching artifacts returns False"""
        assert copy_selected_artifacts(str(registry), str(tmp_path / "dst"), "w", ["missing"]) is False

    def test_copy_selected_missing_source(self, tmp_path):
        """Test missing source directory"""
        with pytest.raises(FileNotFoundError):
            copy_selected_artifacts(str(tmp_path / "nope"), str(tmp_path / "dst"), "w", ["a"])

    def test_copy_all(self, registry, tmp_path):
        """Test full directory copy"""
        dst = tmp_path / "all"
        assert copy_all_artifacts(str(registry), str(dst)) is True
        assert (dst / "notes.txt").exists()


class TestFormatAge:
    """Tests for format_age function"""

    def test_units(self):
        """Test kubectl style age units"""
        now = datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert format_age(now - timedelta(seconds=40), now) == "40s"
        assert format_age(now - timedelta(minutes=12), now) == "12m"
        assert format_age(now - timedelta(hours=5), now) == "5h"
        assert format_age(now - timedelta(days=3), now) == "3d"

    def test_none(self):
        """Test missing creation time"""
        assert format_age(None) == ""

    def test_naive_datetime(self):
        """Test naive datetimes are treated as UTC"""
        now = datetime(2024, 1, 10, tzinfo=timezone.utc)
        assert format_age(datetime(2024, 1, 9, 23, 0), now) == "1h"


class TestMisc:
    """Tests for small helpers"""

    def test_sanitize_name(self):
        """Test dots are replaced for resource names"""
        assert sanitize_name("llama-3.1") == "llama-3-1"

    def test_list_folder_names(self, tmp_path):
        """Test only directories are listed, sorted"""
        (tmp_path / "b").mkdir()
        (tmp_path / "a").mkdir()
        (tmp_path / "file.txt").write_text("x")
        assert list_folder_names(str(tmp_path)) == ["a", "b"]
