"""JUnit XML parser producing a tree of TestSuite objects."""

import logging
import os
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Union

from .errors import ReportError
from .models import JUnitError, Test, TestStatus, TestSuite

logger = logging.getLogger(__name__)


class JUnitParser:
    """Reads JUnit XML reports.

    ``<testsuites>`` wrappers are transparent; a ``<testsuite>`` nested in
    another ``<testsuite>`` becomes a child suite of it.
    """

    def ingest_dir(self, path: Union[str, Path]) -> list[TestSuite]:
        """Parse every ``*.xml`` file below ``path``.

        ``path`` may also point at a single report file.
        """
        root = Path(path)
        if not root.exists():
            raise ReportError(f"reports path does not exist: {root}")

        if root.is_file():
            return self.parse_file(root)

        suites = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            for filename in sorted(filenames):
                if not filename.lower().endswith('.xml'):
                    continue
                suites.extend(self.parse_file(Path(dirpath) / filename))
        return suites

    def parse_file(self, path: Path) -> list[TestSuite]:
        logger.debug(f"Parsing JUnit report {path}")
        try:
            tree = ET.parse(path)
        except (ET.ParseError, OSError) as e:
            raise ReportError(f"could not parse {path}: {e}") from e
        return self.parse_element(tree.getroot())

    def parse_string(self, content: str) -> list[TestSuite]:
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise ReportError(f"could not parse report: {e}") from e
        return self.parse_element(root)

    def parse_element(self, element: ET.Element) -> list[TestSuite]:
        if element.tag == 'testsuite':
            return [self._parse_suite(element)]
        suites = []
        for child in element:
            suites.extend(self.parse_element(child))
        return suites

    def _parse_suite(self, element: ET.Element) -> TestSuite:
        suite = TestSuite(
            name=element.get('name', ''),
            package=element.get('package', ''),
        )
        for child in element:
            if child.tag == 'testsuite':
                suite.suites.append(self._parse_suite(child))
            elif child.tag == 'testcase':
                suite.tests.append(self._parse_test(child))
            elif child.tag == 'system-out':
                suite.system_out = _text(child)
            elif child.tag == 'system-err':
                suite.system_err = _text(child)
        return suite

    def _parse_test(self, element: ET.Element) -> Test:
        test = Test(
            name=element.get('name', ''),
            classname=element.get('classname', ''),
            duration_seconds=_seconds(element.get('time', '')),
        )
        for child in element:
            if child.tag == 'skipped':
                test.status = TestStatus.SKIPPED
                test.message = child.get('message', '')
            elif child.tag in ('failure', 'error'):
                test.status = TestStatus.FAILED if child.tag == 'failure' else TestStatus.ERROR
                test.message = child.get('message', '')
                test.error = JUnitError(
                    message=child.get('message', ''),
                    type=child.get('type', ''),
                    body=_text(child),
                )
            elif child.tag == 'system-out':
                test.system_out = _text(child)
            elif child.tag == 'system-err':
                test.system_err = _text(child)
        return test


def _text(element: ET.Element) -> str:
    return ''.join(element.itertext())


def _seconds(value: str) -> float:
    try:
        return float(value.replace(',', ''))
    except ValueError:
        return 0.0
