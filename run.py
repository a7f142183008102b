#!/usr/bin/env python3
"""
Support Bot Knowledge Base - command line entry point.

    python run.py api --port 8000
    python run.py init-db
    python run.py ingest faq.pdf returns.docx --client-id acme
    python run.py search "how do I get a refund?" --k 3
    python run.py delete 42
"""

from supportkb.cli import cli

if __name__ == '__main__':
    cli()
