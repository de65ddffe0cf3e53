#!/usr/bin/env python3
"""
AI Report Writer - Main Entry Point

Turns report requirements into an outline, then into a full report,
using an OpenAI chat-completion model.

Usage:
    python3 -m report_writer serve
    python3 -m report_writer outline --purpose ... --topic ... --content-file notes.txt
    python3 -m report_writer --help
"""

from report_writer.adapters.cli import app


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
