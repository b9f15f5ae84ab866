"""
Integration tests for ``metadata_3mf.transcode.transcoder``.

Transcodes real ZIP archives on disk and checks the rewritten models, the
untouched passthrough entries, and the clean-up after failures.
"""

import io
import unittest
import warnings
import xml.etree.ElementTree as ET
import zipfile
from contextlib import redirect_stderr

from test_base import (
    CONTENT_TYPES_LOCATION,
    MODEL_LOCATION,
    MODEL_NAMESPACE,
    Metadata3MFTestCase,
    THUMBNAIL_BYTES,
    make_metadata_xml,
    make_model_xml,
)

from metadata_3mf.common.errors import (
    BadArchiveError,
    MissingNameError,
    ModelParseError,
    UnsafeEntryError,
)
from metadata_3mf.common.metadata import load_metadata_document
from metadata_3mf.transcode import (
    ArchiveReader,
    ArchiveWriter,
    TranscodeOptions,
    transcode,
    transcode_file,
)

NS = {"3mf": MODEL_NAMESPACE}


def _metadata_block(model_bytes: bytes):
    root = ET.fromstring(model_bytes)
    return [(e.get("name"), e.text) for e in root.findall("3mf:metadata", NS)]


def _document(*metadata):
    return load_metadata_document(make_metadata_xml(*metadata))


# ============================================================================
# transcode_file: model entries
# ============================================================================

class TestTranscodeModel(Metadata3MFTestCase):
    """The ``.model`` entry gets the merged metadata block."""

    def test_injects_into_model_without_metadata(self):
        source = self.write_3mf()
        output = self.temp_dir / "cube_licensed.3mf"
        result = transcode_file(
            source, output, _document(("License", "CC0"), ("Designer", "Jane")), TranscodeOptions()
        )

        self.assertEqual(result.model_entries, [MODEL_LOCATION])
        self.assertEqual(result.output_path, str(output))
        model = self.read_entry(output, MODEL_LOCATION)
        self.assertEqual(_metadata_block(model), [("License", "CC0"), ("Designer", "Jane")])

    def test_metadata_precedes_geometry(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        root = ET.fromstring(self.read_entry(output, MODEL_LOCATION))
        local_names = [child.tag.rsplit("}", 1)[1] for child in root]
        self.assertEqual(local_names, ["metadata", "resources", "build"])

    def test_model_entry_is_deflated(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        with zipfile.ZipFile(output) as archive:
            self.assertEqual(archive.getinfo(MODEL_LOCATION).compress_type, zipfile.ZIP_DEFLATED)
            self.assertIsNone(archive.testzip())

    def test_canonical_formatting(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        text = self.read_entry(output, MODEL_LOCATION).decode("utf-8")
        self.assertTrue(text.startswith("<?xml"))
        self.assertIn('\n\t<metadata name="License">CC0</metadata>', text)
        self.assertNotIn("\r", text)
        self.assertNotIn("ns0:", text)

    def test_namespace_declarations_survive(self):
        """requiredextensions="p" needs xmlns:p; unused declarations are kept too."""
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        text = self.read_entry(output, MODEL_LOCATION).decode("utf-8")
        self.assertIn(f'xmlns="{MODEL_NAMESPACE}"', text)
        self.assertIn('xmlns:p="http://schemas.microsoft.com/3dmanufacturing/production/2015/06"', text)
        self.assertIn('xmlns:m="http://schemas.microsoft.com/3dmanufacturing/material/2015/02"', text)
        self.assertIn('requiredextensions="p"', text)
        self.assertIn("p:UUID=", text)

    def test_keep_existing(self):
        source = self.write_3mf(model_xml=make_model_xml(("Author", "A"), ("Title", "Old")))
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("Title", "New")), TranscodeOptions(keep_existing=True))

        model = self.read_entry(output, MODEL_LOCATION)
        self.assertEqual(_metadata_block(model), [("Title", "Old"), ("Author", "A")])

    def test_replace_existing(self):
        source = self.write_3mf(model_xml=make_model_xml(("Author", "A"), ("Title", "Old")))
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("Title", "New")), TranscodeOptions())

        model = self.read_entry(output, MODEL_LOCATION)
        self.assertEqual(_metadata_block(model), [("Author", "A"), ("Title", "New")])

    def test_title_override(self):
        source = self.write_3mf(model_xml=make_model_xml(("Title", "Old")))
        output = self.temp_dir / "out.3mf"
        transcode_file(
            source, output, _document(("Title", "New")), TranscodeOptions(keep_existing=True, title="cube_licensed")
        )

        model = self.read_entry(output, MODEL_LOCATION)
        self.assertEqual(_metadata_block(model), [("Title", "cube_licensed")])
        self.assertIn("setting title to cube_licensed", self.stderr.getvalue())

    def test_every_model_entry_is_merged(self):
        source = self.write_archive("multi.3mf", [
            (CONTENT_TYPES_LOCATION, "<Types/>"),
            (MODEL_LOCATION, make_model_xml()),
            ("3D/Objects/object_1.model", make_model_xml(("Title", "Part"))),
        ])
        output = self.temp_dir / "out.3mf"
        result = transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        self.assertEqual(result.model_entries, [MODEL_LOCATION, "3D/Objects/object_1.model"])
        self.assertEqual(_metadata_block(self.read_entry(output, MODEL_LOCATION)), [("License", "CC0")])
        self.assertEqual(
            _metadata_block(self.read_entry(output, "3D/Objects/object_1.model")),
            [("Title", "Part"), ("License", "CC0")],
        )

    def test_second_pass_with_keep_existing_is_idempotent(self):
        source = self.write_3mf(model_xml=make_model_xml(("Author", "A")))
        document = _document(("License", "CC0"), ("Author", "B"))
        first = self.temp_dir / "first.3mf"
        second = self.temp_dir / "second.3mf"
        transcode_file(source, first, document, TranscodeOptions(keep_existing=True))
        transcode_file(first, second, document, TranscodeOptions(keep_existing=True))

        first_block = _metadata_block(self.read_entry(first, MODEL_LOCATION))
        self.assertEqual(first_block, [("License", "CC0"), ("Author", "A")])
        self.assertEqual(_metadata_block(self.read_entry(second, MODEL_LOCATION)), first_block)


# ============================================================================
# transcode_file: passthrough entries
# ============================================================================

class TestTranscodePassthrough(Metadata3MFTestCase):
    """Everything that isn't a model is copied bit for bit."""

    def test_entry_order_is_preserved(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        with zipfile.ZipFile(source) as a, zipfile.ZipFile(output) as b:
            self.assertEqual(a.namelist(), b.namelist())

    def test_passthrough_entries_are_identical(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        result = transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertEqual(
            result.copied_entries, [CONTENT_TYPES_LOCATION, "_rels/.rels", "Metadata/thumbnail.png"]
        )

        with open(source, "rb") as a, open(output, "rb") as b:
            with ArchiveReader(a) as before, ArchiveReader(b) as after:
                for name in result.copied_entries:
                    old = before.archive.getinfo(name)
                    new = after.archive.getinfo(name)
                    self.assertEqual(before.read_raw(old), after.read_raw(new), name)
                    self.assertEqual(old.CRC, new.CRC, name)
                    self.assertEqual(old.compress_type, new.compress_type, name)
                    self.assertEqual(old.compress_size, new.compress_size, name)
                    self.assertEqual(old.date_time, new.date_time, name)
                    self.assertEqual(before.read(old), after.read(new), name)

    def test_stored_entry_stays_stored(self):
        source = self.write_3mf()
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        with zipfile.ZipFile(output) as archive:
            info = archive.getinfo("Metadata/thumbnail.png")
            self.assertEqual(info.compress_type, zipfile.ZIP_STORED)
            self.assertEqual(archive.read(info), THUMBNAIL_BYTES)

    def test_duplicate_entry_names_are_kept(self):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            source = self.write_archive("dup.3mf", [
                ("notes.txt", "first"),
                ("notes.txt", "second"),
                (MODEL_LOCATION, make_model_xml()),
            ])
            output = self.temp_dir / "out.3mf"
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        with zipfile.ZipFile(output) as archive:
            self.assertEqual(archive.namelist(), ["notes.txt", "notes.txt", MODEL_LOCATION])

    def test_archive_without_models(self):
        source = self.write_archive("plain.zip", [("readme.txt", "hello")])
        output = self.temp_dir / "out.zip"
        result = transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        self.assertEqual(result.model_entries, [])
        self.assertEqual(self.read_entry(output, "readme.txt"), b"hello")

    def test_unknown_compression_method_is_copied(self):
        blob = zipfile.ZipInfo("Metadata/blob.bin", date_time=(2021, 5, 4, 3, 2, 0))
        blob.compress_type = zipfile.ZIP_STORED
        source = self.write_archive("blob.3mf", [
            (MODEL_LOCATION, make_model_xml()),
            (blob, b"opaque vendor payload"),
        ])
        self.set_compress_type(source, "Metadata/blob.bin", 99)
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        with open(source, "rb") as before_stream, open(output, "rb") as after_stream:
            with ArchiveReader(before_stream) as before, ArchiveReader(after_stream) as after:
                old = before.archive.getinfo("Metadata/blob.bin")
                new = after.archive.getinfo("Metadata/blob.bin")
                self.assertEqual(new.compress_type, 99)
                self.assertEqual(new.CRC, old.CRC)
                self.assertEqual(after.read_raw(new), b"opaque vendor payload")


# ============================================================================
# transcode_file: failures
# ============================================================================

class TestTranscodeFailures(Metadata3MFTestCase):
    """Failures propagate and never leave partial output behind."""

    def test_malformed_model(self):
        source = self.write_3mf(model_xml="<model><resources>")
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(ModelParseError):
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertFalse(output.exists())
        self.assertEqual(self.temp_listing(), ["cube.3mf"])

    def test_failure_leaves_existing_output_untouched(self):
        source = self.write_3mf(model_xml="<model><resources>")
        output = self.temp_dir / "out.3mf"
        output.write_bytes(b"previous")
        with self.assertRaises(ModelParseError):
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertEqual(output.read_bytes(), b"previous")

    def test_model_metadata_without_name(self):
        model = make_model_xml().replace("<resources>", "<metadata>anonymous</metadata>\n  <resources>")
        source = self.write_3mf(model_xml=model)
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(MissingNameError):
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertFalse(output.exists())

    def test_unsafe_entry_name(self):
        source = self.write_archive("evil.3mf", [
            (MODEL_LOCATION, make_model_xml()),
            (zipfile.ZipInfo("../outside.txt"), "gotcha"),
        ])
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(UnsafeEntryError):
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertFalse(output.exists())

    def test_not_a_zip(self):
        source = self.temp_dir / "broken.3mf"
        source.write_bytes(b"this is not a zip archive")
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(BadArchiveError):
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertEqual(self.temp_listing(), ["broken.3mf"])

    def test_entry_name_not_valid_utf8(self):
        source = self.write_archive("names.3mf", [
            (MODEL_LOCATION, make_model_xml()),
            ("Metadata/é_XX.png", THUMBNAIL_BYTES),
        ])
        self.patch_archive(source, "Metadata/é_XX.png".encode("utf-8"), b"Metadata/\xff\xfe_XX.png")
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(UnsafeEntryError) as cm:
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertIn("Metadata/", str(cm.exception))
        self.assertIn("is not valid UTF-8", str(cm.exception))
        self.assertEqual(self.temp_listing(), ["names.3mf"])

    def test_corrupt_model_data(self):
        source = self.write_3mf()
        self.corrupt_entry_data(source, MODEL_LOCATION)
        output = self.temp_dir / "out.3mf"
        with self.assertRaises(BadArchiveError) as cm:
            transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())
        self.assertIn(MODEL_LOCATION, str(cm.exception))
        self.assertEqual(self.temp_listing(), ["cube.3mf"])


# ============================================================================
# transcode_file: non-ASCII names and values
# ============================================================================

class TestTranscodeUnicode(Metadata3MFTestCase):
    """Metadata values and entry names outside ASCII survive the transcode."""

    def test_unicode_metadata_values(self):
        source = self.write_3mf(model_xml=make_model_xml(("Designer", "Zoë Ångström")))
        output = self.temp_dir / "out.3mf"
        transcode_file(source, output, _document(("Title", "立方体"), ("Notes", "Größe: 10 mm")), TranscodeOptions())

        self.assertEqual(
            _metadata_block(self.read_entry(output, MODEL_LOCATION)),
            [("Designer", "Zoë Ångström"), ("Title", "立方体"), ("Notes", "Größe: 10 mm")],
        )

    def test_unicode_entry_names(self):
        source = self.write_archive("unicode.3mf", [
            (MODEL_LOCATION, make_model_xml()),
            ("Metadata/Vorschaubild_größe.png", THUMBNAIL_BYTES),
            ("3D/Objekte/würfel.model", make_model_xml()),
        ])
        output = self.temp_dir / "out.3mf"
        result = transcode_file(source, output, _document(("License", "CC0")), TranscodeOptions())

        self.assertEqual(result.model_entries, [MODEL_LOCATION, "3D/Objekte/würfel.model"])
        with zipfile.ZipFile(output) as archive:
            self.assertEqual(archive.read("Metadata/Vorschaubild_größe.png"), THUMBNAIL_BYTES)
            self.assertEqual(
                _metadata_block(archive.read("3D/Objekte/würfel.model")), [("License", "CC0")]
            )


# ============================================================================
# transcode: in-memory streams
# ============================================================================

class TestTranscodeStreams(unittest.TestCase):
    """``transcode()`` works on any seekable binary streams."""

    def _source(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr("a.txt", "alpha")
            archive.writestr(MODEL_LOCATION, make_model_xml())
        buf.seek(0)
        return buf

    def test_round_trip_in_memory(self):
        destination = io.BytesIO()
        with redirect_stderr(io.StringIO()):
            with ArchiveReader(self._source()) as reader, ArchiveWriter(destination) as writer:
                result = transcode(reader, writer, _document(("License", "CC0")), TranscodeOptions())
        self.assertEqual(result.num_entries, 2)
        self.assertEqual(writer.state, "finalized")

        destination.seek(0)
        with zipfile.ZipFile(destination) as archive:
            self.assertEqual(archive.read("a.txt"), b"alpha")
            self.assertEqual(_metadata_block(archive.read(MODEL_LOCATION)), [("License", "CC0")])

    def test_writer_abandoned_on_error(self):
        destination = io.BytesIO()
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(RuntimeError):
                with ArchiveWriter(destination) as writer:
                    writer.archive.writestr("a.txt", "alpha")
                    raise RuntimeError("stop")
        self.assertEqual(writer.state, "abandoned")
        destination.seek(0)
        with self.assertRaises(zipfile.BadZipFile):
            zipfile.ZipFile(destination)


if __name__ == "__main__":
    unittest.main()
