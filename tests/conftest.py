"""Pytest configuration and shared fixtures for the mdbridge test suite.

This module provides shared fixtures and test configuration used across
the entire test suite.
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from mdbridge.ast import (
    BlockQuote,
    Document,
    Frontmatter,
    Heading,
    Image,
    Mark,
    Paragraph,
    Table,
    TableBody,
    TableCell,
    TableHead,
    TableHeader,
    TableRow,
    Text,
)

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")
    config.addinivalue_line("markers", "fuzzing: Property-based tests driven by Hypothesis")


@pytest.fixture
def sample_markdown() -> str:
    """Provide a document exercising every supported construct.

    Returns
    -------
    str
        Markdown source with frontmatter, annotations, a table, an image and
        a span.

    """
    return """---
title: Report
status: draft
---

# Findings {.title}

Elevated *troponin*{.tag-biomarker} was seen in **most** patients.

![Chart](img/chart.png "Trend"){.figure width=320 align=center}

| Marker | Value |
| :--- | ---: |
| TnI | 0.4 |
| CK-MB | 12 |
{.results}

> Quoted note.

{.callout}
"""


@pytest.fixture
def sample_document() -> Document:
    """Provide the tree that ``sample_markdown`` parses to."""
    return Document(
        children=[
            Frontmatter(raw_yaml="title: Report\nstatus: draft"),
            Heading(level=1, content=[Text("Findings")], class_="title"),
            Paragraph(
                content=[
                    Text("Elevated "),
                    Text("troponin", marks=(Mark.span("tag-biomarker"), Mark.em())),
                    Text(" was seen in "),
                    Text("most", marks=(Mark.strong(),)),
                    Text(" patients."),
                ]
            ),
            Paragraph(
                content=[
                    Image(
                        src="img/chart.png",
                        alt="Chart",
                        title="Trend",
                        width=320,
                        align="center",
                        class_="figure",
                    )
                ]
            ),
            Table(
                head=TableHead(
                    rows=[
                        TableRow(
                            cells=[
                                TableHeader(content=[Text("Marker")], align="left"),
                                TableHeader(content=[Text("Value")], align="right"),
                            ]
                        )
                    ]
                ),
                body=TableBody(
                    rows=[
                        TableRow(
                            cells=[
                                TableCell(content=[Text("TnI")], align="left"),
                                TableCell(content=[Text("0.4")], align="right"),
                            ]
                        ),
                        TableRow(
                            cells=[
                                TableCell(content=[Text("CK-MB")], align="left"),
                                TableCell(content=[Text("12")], align="right"),
                            ]
                        ),
                    ]
                ),
                class_="results",
            ),
            BlockQuote(children=[Paragraph(content=[Text("Quoted note.")])], class_="callout"),
        ]
    )
