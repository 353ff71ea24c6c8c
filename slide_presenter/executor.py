"""
Fragment executor.

Runs the presentation-only code fragments of a slide inside the presenter's
own process, so whatever a fragment changes (the view, display settings, the
document) is what the audience sees next.
"""
import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set

from .models import Fragment

logger = logging.getLogger(__name__)


@dataclass
class FragmentResult:
    fragment: Fragment
    executed: bool
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FragmentExecutor:
    """
    Executes fragments of one kind in a shared namespace.

    The namespace lives for the whole show: bindings made by one fragment are
    visible to every later one.  Fragments flagged ``:once`` run on the first
    visit only.
    """

    def __init__(self, kind: str = ":present", namespace: Optional[Dict[str, Any]] = None,
                 notify: Optional[Callable[[str], None]] = None):
        self.kind = kind
        self.namespace: Dict[str, Any] = namespace if namespace is not None else {}
        self.notify = notify
        self._ran_once: Set[str] = set()

    def reset(self) -> None:
        """Forget which ``:once`` fragments already ran."""
        self._ran_once.clear()

    @staticmethod
    def _once_key(label: str, fragment: Fragment) -> str:
        return hashlib.sha1(f"{label}\0{fragment.source}".encode('utf-8')).hexdigest()

    def execute(self, document, scope, view=None, label: str = "") -> List[FragmentResult]:
        """
        Run every fragment of ``self.kind`` in *scope*, strictly in source order.

        Args:
            document: Document holding the fragments
            scope: Section (or line range) to search
            view: View whose folds hide each fragment after it ran
            label: Name used in tracebacks and ``:once`` bookkeeping

        Returns:
            One result per fragment found
        """
        results: List[FragmentResult] = []
        for fragment in document.find_fragments(scope, self.kind):
            key = self._once_key(label, fragment)
            if fragment.once and key in self._ran_once:
                logger.debug("Skipping :once fragment at line %d", fragment.start + 1)
                results.append(FragmentResult(fragment, executed=False))
            else:
                results.append(self._run(fragment, label))
                if fragment.once:
                    self._ran_once.add(key)

            if view is not None:
                view.fold(fragment.start, fragment.end)
        return results

    def _run(self, fragment: Fragment, label: str) -> FragmentResult:
        filename = f"<fragment {label or '?'}:{fragment.start + 1}>"
        try:
            code = compile(fragment.source, filename, "exec")
            exec(code, self.namespace)
        except Exception as exc:
            logger.warning("Fragment at line %d failed: %s: %s",
                           fragment.start + 1, type(exc).__name__, exc, exc_info=True)
            if self.notify is not None:
                self.notify(f"Fragment at line {fragment.start + 1} failed: {type(exc).__name__}: {exc}")
            return FragmentResult(fragment, executed=True, error=exc)
        logger.debug("Ran fragment at line %d", fragment.start + 1)
        return FragmentResult(fragment, executed=True)
