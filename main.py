#!/usr/bin/env python3
"""
ChunkScribe Entry Point Script

Transcribes a single audio file given as argument, or every audio file in the
input directory when called without one.
"""

from chunkscribe.cli import CLIHandler

if __name__ == "__main__":
    cli = CLIHandler()
    cli.run()
