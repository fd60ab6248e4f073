import tempfile
import unittest
from pathlib import Path

from vault_linker.corpus_index import CorpusIndex
from vault_linker.documents import (
    Document,
    FrontmatterError,
    load_vault_documents,
    normalise_aliases,
    split_frontmatter,
    vault_document_source,
)


def write_note(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class NormaliseAliasesTests(unittest.TestCase):
    def test_shapes(self) -> None:
        self.assertEqual(normalise_aliases(None), [])
        self.assertEqual(normalise_aliases("SingleAlias"), ["SingleAlias"])
        self.assertEqual(normalise_aliases(["John", " J. Smith ", "", "  "]), ["John", "J. Smith"])
        self.assertEqual(normalise_aliases(("A", 3, None, "B")), ["A", "B"])
        self.assertEqual(normalise_aliases(42), [])
        self.assertEqual(normalise_aliases({"nested": "map"}), [])


class SplitFrontmatterTests(unittest.TestCase):
    def test_splits_metadata_and_body(self) -> None:
        text = "---\naliases: [Sarah, S. Chen]\nrole: PM\n---\n# Sarah\nBody text\n"
        metadata, body, block = split_frontmatter(text)
        self.assertEqual(metadata["aliases"], ["Sarah", "S. Chen"])
        self.assertEqual(body, "# Sarah\nBody text\n")
        self.assertEqual(block + body, text)

    def test_no_frontmatter(self) -> None:
        self.assertEqual(split_frontmatter("# Title\n"), ({}, "# Title\n", ""))

    def test_unclosed_frontmatter_is_body(self) -> None:
        text = "---\naliases: [a]\nno closing fence\n"
        self.assertEqual(split_frontmatter(text), ({}, text, ""))

    def test_empty_frontmatter(self) -> None:
        metadata, body, block = split_frontmatter("---\n---\nbody")
        self.assertEqual(metadata, {})
        self.assertEqual(body, "body")
        self.assertEqual(block, "---\n---\n")

    def test_malformed_yaml_raises(self) -> None:
        with self.assertRaises(FrontmatterError):
            split_frontmatter("---\naliases: [unclosed\n---\nbody\n")

    def test_non_mapping_raises(self) -> None:
        with self.assertRaises(FrontmatterError):
            split_frontmatter("---\n- just\n- a list\n---\nbody\n")


class LoadVaultDocumentsTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tempdir = tempfile.TemporaryDirectory()
        self.vault = Path(self._tempdir.name)

    def tearDown(self) -> None:
        self._tempdir.cleanup()

    def test_loads_titles_and_aliases(self) -> None:
        write_note(self.vault, "People/John Smith.md", "---\naliases:\n  - John\n  - J. Smith\n---\n# John\n")
        write_note(self.vault, "Notes/Test.md", "---\naliases: SingleAlias\n---\n")
        write_note(self.vault, "Notes/Plain.md", "# Plain note\n")
        write_note(self.vault, "Notes/image.png", "not a note")

        documents = load_vault_documents(self.vault)

        self.assertEqual(
            documents,
            [
                Document("Notes/Plain.md", "Plain", ()),
                Document("Notes/Test.md", "Test", ("SingleAlias",)),
                Document("People/John Smith.md", "John Smith", ("John", "J. Smith")),
            ],
        )

    def test_reads_singular_alias_key(self) -> None:
        write_note(self.vault, "Projects/Project Phoenix.md", "---\nalias: Phoenix\n---\n")
        self.assertEqual(load_vault_documents(self.vault)[0].aliases, ("Phoenix",))

    def test_skips_hidden_folders(self) -> None:
        write_note(self.vault, ".obsidian/templates/Hidden.md", "")
        write_note(self.vault, "Visible.md", "")
        self.assertEqual([d.identifier for d in load_vault_documents(self.vault)], ["Visible.md"])

    def test_malformed_frontmatter_keeps_note_without_aliases(self) -> None:
        write_note(self.vault, "People/Broken.md", "---\naliases: [unclosed\n---\n")
        write_note(self.vault, "People/Sarah Chen.md", "---\naliases: [Sarah]\n---\n")
        with self.assertLogs("vault_linker.documents", level="WARNING") as logs:
            documents = load_vault_documents(self.vault)
        self.assertIn("People/Broken.md", "\n".join(logs.output))
        self.assertEqual(documents[0], Document("People/Broken.md", "Broken", ()))
        self.assertEqual(documents[1].aliases, ("Sarah",))

    def test_undecodable_note_keeps_title(self) -> None:
        path = self.vault / "Notes" / "Binary.md"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"\xff\xfe\xfa")
        with self.assertLogs("vault_linker.documents", level="WARNING"):
            documents = load_vault_documents(self.vault)
        self.assertEqual(documents, [Document("Notes/Binary.md", "Binary", ())])

    def test_custom_extension(self) -> None:
        write_note(self.vault, "Notes/Readme.txt", "")
        write_note(self.vault, "Notes/Other.md", "")
        documents = load_vault_documents(self.vault, ".txt")
        self.assertEqual(documents, [Document("Notes/Readme.txt", "Readme", ())])

    def test_source_feeds_corpus_index(self) -> None:
        write_note(self.vault, "People/Sarah Chen.md", "---\naliases: [Sarah]\n---\n")
        write_note(self.vault, "Archive/Old Sarah.md", "")
        index = CorpusIndex(vault_document_source(self.vault), excluded_prefixes=["Archive"])
        index.build_index()
        self.assertEqual(index.lookup_exact("sarah"), "People/Sarah Chen.md")
        self.assertIsNone(index.lookup_exact("old sarah"))

        write_note(self.vault, "People/Sarah Jones.md", "---\naliases: [Sarah]\n---\n")
        index.build_index()
        self.assertEqual(len(index.lookup_ambiguous("sarah")), 2)


if __name__ == "__main__":
    unittest.main()
