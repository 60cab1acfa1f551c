#!/usr/bin/env python3
"""
seqhmm-train

Fit a categorical HMM to a plain-text corpus with Baum-Welch.

Input is one sequence per line, tokens separated by whitespace. Tokens
are mapped to symbol ids in order of first appearance. Writes the model
(.hmm) and its vocabulary (.vocab, one token per line, line number =
symbol id), then prints the most probable tokens of each state.
"""

import argparse
import os
import sys
from typing import Dict, List, Optional, Tuple

import numpy as np

from seqhmm.cli.common import (
    add_input_args,
    add_output_args,
    add_parallel_args,
    add_seed_args,
    add_states_args,
    add_training_args,
    add_verbose_args,
    add_version_args,
)
from seqhmm.core.hmm import HiddenMarkovModel, TrainingOptions
from seqhmm.core.model_io import save_model
from seqhmm.emissions.categorical import CategoricalObservations
from seqhmm.exceptions import HMMError
from seqhmm.logger import set_log_level


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Train a categorical HMM on unlabeled token sequences',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    add_input_args(parser)
    add_output_args(parser)
    add_states_args(parser)
    add_training_args(parser)
    add_parallel_args(parser)
    add_seed_args(parser)
    parser.add_argument('--top-k', type=int, default=10,
                        help='Tokens to print per state')
    add_verbose_args(parser)
    add_version_args(parser)
    return parser.parse_args(argv)


def read_corpus(filepath: str) -> Tuple[List[List[int]], List[str]]:
    """
    Read a whitespace-tokenized corpus.

    Blank lines are skipped.

    Returns:
        (sequences, vocabulary) where sequences hold symbol ids and
        vocabulary[i] is the token for symbol id i
    """
    vocab: Dict[str, int] = {}
    sequences = []
    with open(filepath, 'r') as f:
        for line in f:
            tokens = line.split()
            if not tokens:
                continue
            sequences.append([vocab.setdefault(tok, len(vocab)) for tok in tokens])

    vocabulary = [None] * len(vocab)
    for tok, idx in vocab.items():
        vocabulary[idx] = tok
    return sequences, vocabulary


def write_vocabulary(vocabulary: List[str], filepath: str):
    with open(filepath, 'w') as f:
        for tok in vocabulary:
            f.write(tok + '\n')


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    set_log_level('INFO' if args.verbose else 'WARNING')

    if not os.path.exists(args.input):
        print(f"Error: input file not found: {args.input}", file=sys.stderr)
        return 1

    sequences, vocabulary = read_corpus(args.input)
    if not sequences:
        print(f"Error: no sequences in {args.input}", file=sys.stderr)
        return 1

    print("seqhmm training")
    print(f"  Input: {args.input}")
    print(f"  Sequences: {len(sequences):,}")
    print(f"  Vocabulary: {len(vocabulary):,} tokens")
    print(f"  States: {args.states}")
    print(f"  Seed: {args.seed}")

    rng = np.random.default_rng(args.seed)
    observations = CategoricalObservations(args.states, len(vocabulary), rng=rng)
    model = HiddenMarkovModel(args.states, observations, rng=rng)

    try:
        log_likelihood = model.fit(
            sequences,
            TrainingOptions(delta=args.delta, max_iters=args.max_iters),
            n_workers=args.cores,
            show_progress=args.verbose,
        )
    except HMMError as e:
        print(f"Error: training failed: {e}", file=sys.stderr)
        return 1

    status = 'converged' if model.monitor_.converged else 'stopped'
    print(f"\nTraining {status} after {model.monitor_.n_iter} iterations")
    print(f"  Log likelihood: {log_likelihood:.4f}")

    outdir = os.path.dirname(args.output)
    if outdir:
        os.makedirs(outdir, exist_ok=True)
    model_path = save_model(model, args.output)
    vocab_path = os.path.splitext(model_path)[0] + '.vocab'
    write_vocabulary(vocabulary, vocab_path)
    print(f"  Model: {model_path}")
    print(f"  Vocabulary: {vocab_path}")

    observations = model.observation_distribution()
    for s in range(model.n_states):
        top = observations.top_symbols(s, args.top_k)
        words = ', '.join(f"{vocabulary[i]} ({observations.probability(i, s):.3f})"
                          for i in top)
        print(f"State {s}: {words}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
