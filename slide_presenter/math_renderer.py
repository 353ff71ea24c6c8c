#!/usr/bin/env python3
"""
Math renderer - typesets formulas of a slide at presentation scale.

Formulas are located in the HTML rendering of the slide and written to a
cache file per (formula, scale, mode).  The files are registered as generated
artifacts so they disappear when the show stops.
"""

import hashlib
import logging
import re
from pathlib import Path
from typing import List, Optional

from bs4 import BeautifulSoup

from .artifacts import GeneratedArtifacts
from .display import TypesetFormula

logger = logging.getLogger(__name__)


class MathRenderer:
    """
    Typesets ``$...$`` / ``$$...$$`` math found in a document scope.
    """

    def __init__(self, cache_dir: Path, artifacts: Optional[GeneratedArtifacts] = None, debug: bool = False):
        """
        Initialize the math renderer.

        Args:
            cache_dir: Directory for typeset formula files
            artifacts: Registry the written files are added to
            debug: Enable debug output
        """
        self.debug = debug
        self.cache_dir = Path(cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.artifacts = artifacts if artifacts is not None else GeneratedArtifacts()

    def render_formula(self, latex: str, display_mode: bool, scale: float) -> TypesetFormula:
        """
        Write the typeset form of one formula.

        Args:
            latex: LaTeX math expression
            display_mode: Whether to render in display mode
            scale: Scale factor for the rendered formula

        Returns:
            The typeset formula, pointing at its cache file
        """
        mode = "display" if display_mode else "inline"
        cache_key = hashlib.md5(f"{latex}|{scale}|{mode}".encode('utf-8')).hexdigest()
        path = self.cache_dir / f"{cache_key}.tex"

        if not path.exists():
            with open(path, 'w', encoding='utf-8') as f:
                f.write(f"% scale={scale} mode={mode}\n{latex}\n")
            if self.debug:
                logger.info("Typeset formula at x%s: %s", scale, latex[:50])

        self.artifacts.add(path)
        return TypesetFormula(latex=latex, display_mode=display_mode, scale=scale, path=path)

    def typeset(self, document, scope, scale: float) -> List[TypesetFormula]:
        """
        Typeset every formula inside *scope* of *document*.

        Args:
            document: The :class:`MarkdownDocument` being shown
            scope: Section (or line range) to typeset
            scale: Scale factor for this request

        Returns:
            Formulas in document order
        """
        html_content = document.markdown_processor.render(document.scope_text(scope))
        soup = BeautifulSoup(html_content, 'html.parser')

        formulas = []
        for element in soup.find_all(class_=re.compile(r'\bmath\b')):
            latex = element.get_text().strip()
            if not latex:
                continue
            display_mode = 'block' in (element.get('class') or [])
            formulas.append(self.render_formula(latex, display_mode, scale))

        logger.debug("Typeset %d formula(s) at scale %s", len(formulas), scale)
        return formulas
