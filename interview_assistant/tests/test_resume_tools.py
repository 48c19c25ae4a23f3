import asyncio
import os
import tempfile
import unittest

from interview_assistant.models.resume import ResumeData
from interview_assistant.tools.resume_tools import (
    HeuristicResumeExtractor,
    extract_name,
    extract_phone,
    parse_resume_text,
    read_document_text,
    to_candidate_info,
)
from interview_assistant.utils.constants import DEFAULT_POSITION
from interview_assistant.utils.errors import ResumeExtractionError

SAMPLE_RESUME = """Jane Doe
jane.doe@example.com | 555-123-4567
Summary
Full stack engineer building React and Node.js apps.
Worked at Acme Technologies on Python services.
B.S. Computer Science
"""


class TestResumeHeuristics(unittest.TestCase):

    def test_parse_resume_text(self):
        data = parse_resume_text(SAMPLE_RESUME)
        self.assertEqual(data.personal_info.name, "Jane Doe")
        self.assertEqual(data.personal_info.email, "jane.doe@example.com")
        self.assertEqual(data.personal_info.phone, "555-123-4567")
        for skill in ("React", "Node.js", "Python"):
            self.assertIn(skill, data.skills)
        self.assertEqual(data.experience[0].company, "Acme Technologies")
        self.assertLessEqual(len(data.experience), 3)
        self.assertEqual(data.education[0].degree, "B.S. Computer Science")
        self.assertTrue(data.summary.startswith("Full stack engineer"))

    def test_name_falls_back_to_first_two_words(self):
        self.assertEqual(extract_name("JANE DOE SMITH\nrest"), "JANE DOE")
        self.assertEqual(extract_name(""), "")

    def test_phone_formats(self):
        self.assertEqual(extract_phone("call (555) 123-4567 today"), "(555) 123-4567")
        self.assertEqual(extract_phone("no digits here"), "")

    def test_to_candidate_info(self):
        info = to_candidate_info(parse_resume_text(SAMPLE_RESUME))
        self.assertEqual(info.name, "Jane Doe")
        self.assertEqual(info.experience, 1)
        self.assertEqual(info.education, "B.S. Computer Science from University")
        self.assertEqual(info.position, "Software Developer")
        self.assertEqual(info.missing_fields(), [])

    def test_to_candidate_info_defaults(self):
        info = to_candidate_info(ResumeData())
        self.assertEqual(info.position, DEFAULT_POSITION)
        self.assertEqual(info.experience, 0)
        self.assertEqual(info.missing_fields(), ["name", "email", "phone"])


class TestReadDocument(unittest.TestCase):

    def test_reads_text_file_from_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "resume.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write(SAMPLE_RESUME)
            self.assertTrue(read_document_text(path).startswith("Jane Doe"))

    def test_reads_bytes_with_filename(self):
        self.assertEqual(read_document_text(b"  Jane Doe  ", "resume.TXT"), "Jane Doe")

    def test_unsupported_format(self):
        with self.assertRaises(ResumeExtractionError):
            read_document_text(b"{\\rtf1}", "resume.rtf")

    def test_missing_file(self):
        with self.assertRaises(ResumeExtractionError):
            read_document_text("/nonexistent/resume.txt")


class TestHeuristicResumeExtractor(unittest.TestCase):

    def test_extracts_from_bytes(self):
        extractor = HeuristicResumeExtractor()
        data = asyncio.run(extractor.extract(SAMPLE_RESUME.encode("utf-8"), "resume.txt"))
        self.assertEqual(data.personal_info.email, "jane.doe@example.com")

    def test_empty_document_fails(self):
        extractor = HeuristicResumeExtractor()
        with self.assertRaises(ResumeExtractionError):
            asyncio.run(extractor.extract(b"   ", "resume.txt"))


if __name__ == "__main__":
    unittest.main()
