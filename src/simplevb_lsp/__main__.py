"""Entry point for running the SimpleVB LSP server as a module.

Usage:
    python -m simplevb_lsp
"""

from simplevb_lsp.server import main

if __name__ == "__main__":
    main()
