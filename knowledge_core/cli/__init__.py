# =============================================================================
# knowledge_core/cli/__init__.py - CLI Module Overview
# =============================================================================
#
# Operator-facing command-line tools.  Every subcommand prints a JSON
# document on stdout so results can be piped into jq or other tools;
# logs go to stderr.
#
#   chunk         Split a text file into passages
#   extract       Extract text from an uploaded document
#   crawl         Crawl a site and report pages and failures
#   validate-url  Run the URL safety check
#
# argparse only; heavy imports are deferred inside handlers.
# =============================================================================

"""CLI tools for knowledge_core.

- ``python -m knowledge_core.cli chunk FILE``
- ``python -m knowledge_core.cli extract PATH --type pdf``
- ``python -m knowledge_core.cli crawl URL --depth 2 --max-pages 20``
- ``python -m knowledge_core.cli validate-url URL``
"""
