"""vecgrep package.

vecgrep scans text streams like grep, but flags lines whose words are
*semantically* close to one or more query words, using static pre-trained
word embeddings (word2vec / FastText) instead of exact string matching.

Entry points:
  - CLI: `vecgrep`
  - Library: `vecgrep.scan.run_scan`
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
