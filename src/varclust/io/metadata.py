"""
Sample annotations derived from the metadata table.

The heatmap is annotated with one categorical label per sample: the
mutation group the sample belongs to. The metadata carries no dedicated
column for it; the group is encoded as the prefix of the free-text title
(``TET2-...``, ``IDH2-...``, ``WT-...``). The treatment column is carried
through unchanged as a second annotation.

Examples:
    >>> from varclust.io.metadata import MutationAnnotator
    >>>
    >>> annotator = MutationAnnotator()
    >>> annotator.classify("TET2-sample1")
    'TET2'
    >>> annotator.classify("randomlabel")
    'unknown'
    >>>
    >>> annotations = annotator.build(matrix.sample_metadata)
    >>> annotations['mutation'].value_counts()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence
import pandas as pd

from varclust.io.formats import DataFormat, PRESETS

logger = logging.getLogger(__name__)

__all__ = [
    'MutationAnnotator',
    'build_annotation_table',
    'MUTATION_PREFIXES',
    'UNKNOWN_MUTATION',
]

# Checked in order; first match wins
MUTATION_PREFIXES = ("TET2", "IDH2", "WT")
UNKNOWN_MUTATION = "unknown"


@dataclass(frozen=True)
class MutationAnnotator:
    """
    Assign each sample a mutation group from its title prefix.

    Attributes:
        prefixes: Known group prefixes, checked in order
        unknown_label: Label for titles matching no prefix
    """
    prefixes: Sequence[str] = MUTATION_PREFIXES
    unknown_label: str = UNKNOWN_MUTATION

    @property
    def categories(self) -> list[str]:
        """All labels classify() can return, in display order."""
        return [*self.prefixes, self.unknown_label]

    def classify(self, title: object) -> str:
        """Return the first prefix ``title`` starts with, else the unknown label."""
        if not isinstance(title, str):
            return self.unknown_label
        for prefix in self.prefixes:
            if title.startswith(prefix):
                return prefix
        return self.unknown_label

    def build(
        self,
        metadata: pd.DataFrame,
        fmt: Optional[DataFormat] = None,
    ) -> pd.DataFrame:
        """
        Build the annotation table used for the heatmap side colors.

        Args:
            metadata: Metadata indexed by accession code
            fmt: Column layout (default: refine.bio)

        Returns:
            DataFrame indexed like ``metadata`` with columns ``mutation`` and
            ``treatment``

        Raises:
            ValueError: If the title or treatment column is missing
        """
        fmt = fmt or PRESETS['refinebio']

        missing_cols = [
            c for c in (fmt.title_column, fmt.treatment_column)
            if c not in metadata.columns
        ]
        if missing_cols:
            raise ValueError(f"Metadata is missing annotation columns: {missing_cols}")

        annotations = pd.DataFrame(
            {
                'mutation': [self.classify(t) for t in metadata[fmt.title_column]],
                'treatment': metadata[fmt.treatment_column].values,
            },
            index=metadata.index,
        )

        counts = annotations['mutation'].value_counts()
        logger.info(
            "Mutation groups: " +
            ", ".join(f"{label}={counts.get(label, 0)}" for label in self.categories)
        )
        n_unknown = int(counts.get(self.unknown_label, 0))
        if n_unknown:
            logger.warning(f"{n_unknown} sample title(s) matched no mutation prefix")

        return annotations


def build_annotation_table(
    metadata: pd.DataFrame,
    fmt: Optional[DataFormat] = None,
    prefixes: Sequence[str] = MUTATION_PREFIXES,
) -> pd.DataFrame:
    """Annotation table (``mutation``, ``treatment``) keyed by accession code."""
    return MutationAnnotator(prefixes=tuple(prefixes)).build(metadata, fmt)
