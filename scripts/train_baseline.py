#!/usr/bin/env python3
"""
Train the baseline transit CNN on synthetic light curves.

Generates a labeled synthetic dataset, detrends it, trains the classifier,
evaluates it on a separate synthetic test set and saves the model blob,
the metrics and a training-curve plot.
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, List

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from exoplanet_ai.data.synthetic import generate_training_dataset
from exoplanet_ai.data.types import TrainingConfig
from exoplanet_ai.models.detector import DEFAULT_MODEL_PATH, ExoplanetDetector
from exoplanet_ai.preprocessing.preprocessor import detrend

logger = logging.getLogger('train_baseline')


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train the baseline transit CNN")
    parser.add_argument('--positives', type=int, default=100, help="Training curves with transits")
    parser.add_argument('--negatives', type=int, default=100, help="Training curves without transits")
    parser.add_argument('--test-size', type=int, default=40, help="Test curves per class")
    parser.add_argument('--length', type=int, default=1000, help="Samples per light curve")
    parser.add_argument('--epochs', type=int, default=20)
    parser.add_argument('--batch-size', type=int, default=32)
    parser.add_argument('--seed', type=int, default=42)
    parser.add_argument('--model-path', default=DEFAULT_MODEL_PATH,
                        help="Scheme-prefixed model path, e.g. local-store://exoplanet-model")
    parser.add_argument('--output-dir', type=Path, default=Path('results/baseline'))
    parser.add_argument('--progress', action='store_true', help="Show per-batch progress bars")
    return parser.parse_args()


def plot_history(history: Dict[str, List[float]], save_path: Path):
    """Plot loss and accuracy curves for train and validation splits."""
    fig, (ax_loss, ax_acc) = plt.subplots(1, 2, figsize=(12, 4))
    epochs = np.arange(1, len(history['loss']) + 1)

    ax_loss.plot(epochs, history['loss'], label='train')
    if history['val_loss']:
        ax_loss.plot(epochs, history['val_loss'], label='validation')
    ax_loss.set_xlabel('Epoch')
    ax_loss.set_ylabel('Binary cross-entropy')
    ax_loss.legend()

    ax_acc.plot(epochs, history['accuracy'], label='train')
    if history['val_accuracy']:
        ax_acc.plot(epochs, history['val_accuracy'], label='validation')
    ax_acc.set_xlabel('Epoch')
    ax_acc.set_ylabel('Accuracy')
    ax_acc.legend()

    fig.tight_layout()
    fig.savefig(save_path, dpi=120)
    plt.close(fig)


def main():
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

    rng = np.random.default_rng(args.seed)
    args.output_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Generating %d training and %d test curves",
                args.positives + args.negatives, 2 * args.test_size)
    train_set = generate_training_dataset(args.positives, args.negatives, args.length, rng=rng)
    test_set = generate_training_dataset(args.test_size, args.test_size, args.length, rng=rng)

    train_curves = [detrend(curve) for curve, _ in train_set]
    train_labels = [label for _, label in train_set]
    test_curves = [detrend(curve) for curve, _ in test_set]
    test_labels = [label for _, label in test_set]

    detector = ExoplanetDetector(
        training_config=TrainingConfig(seed=args.seed, show_progress=args.progress),
        seed=args.seed
    )
    history = detector.train_model(
        train_curves, train_labels, epochs=args.epochs, batch_size=args.batch_size
    )

    metrics = detector.evaluate_model(test_curves, test_labels)
    logger.info("Test metrics: %s", metrics.to_dict())

    detector.save_model(args.model_path)

    with open(args.output_dir / 'metrics.json', 'w') as f:
        json.dump({
            'model_version': detector.get_model_version(),
            'model_path': args.model_path,
            'metrics': metrics.to_dict(),
            'history': history
        }, f, indent=2)

    plot_history(history, args.output_dir / 'training_history.png')
    logger.info("Results written to %s", args.output_dir)


if __name__ == '__main__':
    main()
