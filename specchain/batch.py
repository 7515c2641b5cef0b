"""
Batch processing of many audio segments through one pipeline.

Runs are independent: each owns its WaveData and SpecTransform, so they
can execute concurrently without locking.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np
import torch
from tqdm import tqdm

from specchain.pipeline import Pipeline

logger = logging.getLogger(__name__)

Segment = Tuple[Union[np.ndarray, torch.Tensor], float]


def process_batch(
    pipeline: Pipeline,
    segments: Iterable[Segment],
    max_workers: Optional[int] = None,
    progress: bool = True
) -> List[np.ndarray]:
    """
    Run a pipeline over many (signal, sample_rate) segments.

    Args:
        pipeline: Built pipeline
        segments: Iterable of (samples, sample_rate) pairs
        max_workers: Thread pool size (default: executor default)
        progress: Show a tqdm progress bar

    Returns:
        Output matrices in input order

    Raises:
        StageExecutionError: From the first segment that fails
    """
    segments = list(segments)
    results: List[Optional[np.ndarray]] = [None] * len(segments)
    logger.info(f"Processing {len(segments)} segments")

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(pipeline.run, samples, sample_rate): i
            for i, (samples, sample_rate) in enumerate(segments)
        }
        for future in tqdm(as_completed(futures), total=len(futures),
                           desc="Spectrograms", disable=not progress):
            results[futures[future]] = future.result()

    return results
