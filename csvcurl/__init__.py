"""
csvcurl - Templated JSON POSTs from CSV rows
============================================

A small command line tool that sends one HTTP POST per CSV row, with the
request body built from a JSON template.

Modules:
--------
- config.py      : Optional settings (loads CSV_CURL_* variables from .env)
- errors.py      : Error types shared by all modules
- loader.py      : CSV records (pandas) and JSON template loading
- template.py    : {{placeholder}} substitution over a JSON document
- http_client.py : HTTP client for the target URL (requests)
- dispatch.py    : Row-by-row request loop and run summary
- run_csvcurl.py : Command line entry point

Usage:
------
    csv-curl people.csv template.json https://example.com/api/people
    python -m csvcurl.run_csvcurl people.csv template.json https://example.com/api/people

Workflow:
---------
1. Read the CSV; the header row names the columns
2. Read the JSON template
3. For each row, replace {{column}} placeholders with that row's values
4. POST the result as application/json and log status and response
5. Exit 1 if any row got a non-2xx answer or no answer at all
"""

__version__ = "1.0.0"
