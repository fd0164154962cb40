#!/usr/bin/env python3
"""
Retail Banking Entry Point

Starts the FastAPI server for the account request workflow. Host, port,
storage mode and logging come from RETAIL_BANK_* environment settings.
"""

import sys

from retail_banking.api import run_server


if __name__ == "__main__":
    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down Retail Banking API...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
