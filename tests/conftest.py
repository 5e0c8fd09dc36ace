"""
Pytest configuration and shared fixtures.

Provides synthetic expression matrices and metadata tables, and helpers to
write them as TSV files in the layout the loaders expect.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from pathlib import Path

from varclust.core.matrix import ExpressionMatrix

MUTATION_TITLES = ("TET2", "IDH2", "WT")


def generate_expression_frame(
    n_genes: int = 100,
    n_samples: int = 19,
    seed: int = 42,
) -> pd.DataFrame:
    """
    Synthetic normalized expression values (genes × samples).

    Design:
        - Non-negative log-normal values (realistic for normalized RNA-seq)
        - Gene i has a spread proportional to i + 1, so variances are distinct
        - Three sample groups get a shifted mean on a block of genes, giving
          the clustering real structure
    """
    rng = np.random.RandomState(seed)

    base = rng.lognormal(mean=1.0, sigma=0.3, size=(n_genes, n_samples))
    spread = np.arange(1, n_genes + 1)[:, None] / n_genes
    data = base * (1 + spread)

    block = max(n_genes // 4, 1)
    for group in range(3):
        samples = np.arange(group, n_samples, 3)
        genes = slice(group * block, (group + 1) * block)
        data[genes, samples] += 2.0

    gene_ids = [f"ENSG{i:011d}" for i in range(n_genes)]
    sample_ids = [f"SRR{3355200 + j}" for j in range(n_samples)]
    return pd.DataFrame(data, index=pd.Index(gene_ids, name="Gene"), columns=sample_ids)


def generate_metadata(sample_ids, seed: int = 42) -> pd.DataFrame:
    """refine.bio-style metadata: accession code, title and treatment."""
    titles = []
    treatments = []
    for j, sample_id in enumerate(sample_ids):
        if j == len(sample_ids) - 1:
            titles.append(f"AML_patient_{j}")
        else:
            titles.append(f"{MUTATION_TITLES[j % 3]}-sample{j}")
        treatments.append("AZA" if j % 2 == 0 else "none")

    return pd.DataFrame({
        'refinebio_accession_code': list(sample_ids),
        'refinebio_title': titles,
        'refinebio_treatment': treatments,
        'refinebio_organism': 'HOMO_SAPIENS',
    })


def write_expression_tsv(frame: pd.DataFrame, path: Path) -> Path:
    frame = frame.copy()
    frame.index.name = "Gene"
    frame.to_csv(path, sep="\t")
    return path


def write_metadata_tsv(metadata: pd.DataFrame, path: Path) -> Path:
    metadata.to_csv(path, sep="\t", index=False)
    return path


@pytest.fixture(autouse=True)
def close_figures():
    """Make sure no test leaks open matplotlib figures."""
    yield
    plt.close("all")


@pytest.fixture
def expression_frame():
    """100 genes × 19 samples."""
    return generate_expression_frame(n_genes=100, n_samples=19, seed=42)


@pytest.fixture
def metadata_frame(expression_frame):
    return generate_metadata(expression_frame.columns)


@pytest.fixture
def dataset_files(tmp_path, expression_frame, metadata_frame):
    """Expression and metadata TSVs on disk; metadata rows in reversed order."""
    data_dir = tmp_path / "data" / "SRP070849"
    data_dir.mkdir(parents=True)
    expression_path = write_expression_tsv(expression_frame, data_dir / "SRP070849.tsv")
    metadata_path = write_metadata_tsv(
        metadata_frame.iloc[::-1].reset_index(drop=True),
        data_dir / "metadata_SRP070849.tsv",
    )
    return expression_path, metadata_path


@pytest.fixture
def small_matrix(expression_frame, metadata_frame):
    """Aligned ExpressionMatrix with metadata (100 genes × 19 samples)."""
    metadata = metadata_frame.set_index('refinebio_accession_code')
    return ExpressionMatrix(
        data=expression_frame.to_numpy(dtype=float),
        gene_ids=pd.Index(expression_frame.index),
        sample_ids=pd.Index(expression_frame.columns),
        sample_metadata=metadata.loc[expression_frame.columns],
    )


def matrix_with_variances(variances, n_samples: int = 19) -> ExpressionMatrix:
    """
    Matrix whose gene i has sample variance exactly ``variances[i]``.

    Every row is the same zero-mean, unit-variance pattern scaled by
    sqrt(variance) and shifted to stay non-negative.
    """
    pattern = np.linspace(-1.0, 1.0, n_samples)
    pattern = (pattern - pattern.mean()) / pattern.std(ddof=1)
    scales = np.sqrt(np.asarray(variances, dtype=float))[:, None]
    data = scales * pattern[None, :] + 100.0

    gene_ids = pd.Index([f"G{i:03d}" for i in range(len(variances))])
    sample_ids = pd.Index([f"S{j:02d}" for j in range(n_samples)])
    return ExpressionMatrix(data, gene_ids, sample_ids)
