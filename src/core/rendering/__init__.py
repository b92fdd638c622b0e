#!/usr/bin/env python3
"""
Report renderers.

Every renderer is a pure function of a finalized RunSnapshot (plus the
flattened test records where a view needs them).
"""

from .markdown import render_markdown_report
from .html import render_html_report
from .summary_json import build_test_summary, slowest_tests, fastest_tests
from .detailed_html import render_detailed_test_report
from .step_summary import render_step_summary

__all__ = [
    'render_markdown_report', 'render_html_report', 'build_test_summary',
    'slowest_tests', 'fastest_tests', 'render_detailed_test_report', 'render_step_summary',
]
