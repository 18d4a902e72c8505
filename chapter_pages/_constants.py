"""Common literal values used across chapter_pages.

These constants keep filenames and language tags centralized so templates,
generators, and tests can import the same values without drifting. Intended
for internal use within the chapter_pages package.

Examples
--------
>>> from chapter_pages import _constants
>>> _constants.FIGURE_NAME_TEMPLATE.format(label="setup", number=1, ext="png")
'setup-1.png'
>>> _constants.UNNAMED_CHUNK_TEMPLATE.format(index=3)
'unnamed-chunk-3'
"""

BUILD_MANIFEST = ".chapter-pages-manifest.json"
FIGURE_NAME_TEMPLATE = "{label}-{number}.{ext}"
UNNAMED_CHUNK_TEMPLATE = "unnamed-chunk-{index}"

OUTPUT_LANGUAGE = "output"
WARNING_LANGUAGE = "warning"
ERROR_LANGUAGE = "error"

DEFAULT_SOURCE_PATTERNS = ("*.Rmd", "*.pmd", "*.md")
