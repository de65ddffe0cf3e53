#!/usr/bin/env python3
"""
AI Report Writer - Main Entry Point

Usage:
    python main.py serve
    python main.py outline --purpose "..." --topic "..." --content-file notes.txt
    python main.py --help
"""

from report_writer.adapters.cli import app


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
