"""Training entrypoint for sign_classifier.

Usage:
    sign-classifier-train data.train_manifest=train.jsonl data.test_manifest=test.jsonl
    sign-classifier-train ... model.num_epochs=500 model.learning_rate=0.01
    sign-classifier-train ... builder=parametric_sigmoid builder.alpha=2.0
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import hydra
from hydra.core.hydra_config import HydraConfig
from loguru import logger
from omegaconf import DictConfig, OmegaConf

# Import models so the @register decorators populate the ConfigStore before
# Hydra resolves the defaults list.
import sign_classifier.models  # noqa: F401
from sign_classifier.config import DatasetConfig, ModelConfig
from sign_classifier.data import DatasetAssembler
from sign_classifier.evaluation import Evaluator
from sign_classifier.io import EvaluationReportWriter, read_manifest
from sign_classifier.models import NetworkBuilder
from sign_classifier.schemas import EvaluationResult


def build_model_config(cfg: DictConfig, dataset_config: DatasetConfig) -> ModelConfig:
    """Model config whose input and output widths follow the dataset config."""
    model: dict[str, Any] = OmegaConf.to_container(cfg.model, resolve=True)  # type: ignore[assignment]
    model.setdefault("input_size", dataset_config.feature_length)
    model.setdefault("output_size", dataset_config.num_classes)
    model["seed"] = cfg.get("seed", model.get("seed", 1))
    return ModelConfig(**model)


def run(cfg: DictConfig, output_dir: Path) -> EvaluationResult:
    """Assemble both datasets, train, evaluate and write ``evaluation.json``."""
    dataset_config = DatasetConfig(**OmegaConf.to_container(cfg.dataset, resolve=True))  # type: ignore[arg-type]
    model_config = build_model_config(cfg, dataset_config)

    assembler = DatasetAssembler(dataset_config)
    train_set = assembler.build(read_manifest(Path(cfg.data.train_manifest)))
    test_set = assembler.build(read_manifest(Path(cfg.data.test_manifest)))

    builder_factory = hydra.utils.instantiate(cfg.builder, _partial_=True)
    builder: NetworkBuilder = builder_factory(config=model_config)
    logger.info(f"Using {type(builder).__name__}")
    network = builder.build_and_train(train_set)

    result = Evaluator(network, test_set).evaluate()
    logger.info(f"\n{result.stats()}")

    report_path = EvaluationReportWriter(output_dir).write(result)
    logger.info(f"Evaluation report written to {report_path}")
    return result


@hydra.main(version_base=None, config_path="conf", config_name="train")
def main(cfg: DictConfig) -> None:
    """Run training with the given Hydra config."""
    logger.remove()
    logger.add(sys.stderr, level=cfg.get("log_level", "INFO"))

    logger.info(f"Configuration:\n{OmegaConf.to_yaml(cfg)}")

    output_dir = cfg.get("output_dir") or HydraConfig.get().runtime.output_dir
    run(cfg, Path(output_dir))


if __name__ == "__main__":
    main()
