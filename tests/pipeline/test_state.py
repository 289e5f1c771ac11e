"""
测试 PipelineState

测试：
1. 从已拟合的组件创建
2. 一致性验证
3. 保存 / 加载 JSON
"""

import pytest

from mlsamples.pipeline import PipelineState


def _valid_state(**overrides):
    state = {
        "feature_spec": {"features": {"column": "Features", "dim": 4}, "steps": []},
        "trainer_config": {"name": "kmeans", "params": {"num_clusters": 3}},
        "task_type": "clustering",
    }
    state.update(overrides)
    return PipelineState(**state)


def test_from_components(issue_trained):
    """测试从训练好的模型组件创建 PipelineState。"""
    print("=" * 60)
    print("测试 PipelineState.from_components")
    print("=" * 60)

    orchestrator, model, _ = issue_trained
    state = orchestrator.get_pipeline_state()
    assert state is not None
    assert state.task_type == "multiclass"
    assert state.label_column == "Label"
    assert state.label_keys == model.labels
    assert state.feature_spec["features"]["dim"] == model.feature_width
    assert state.pipeline_config_path is not None
    assert state.validate() == (True, [])
    assert model.metadata["pipeline_state"] == state.to_dict()

    info = state.get_model_info()
    assert info["trainer"] == "maximum_entropy_multiclass"
    assert info["num_steps"] == 4
    assert info["num_label_keys"] == 3

    print(f"  {info}")
    print("✓ PipelineState 测试通过\n")


def test_from_components_requires_fitted_chain(issue_config):
    from mlsamples.pipeline import PipelineOrchestrator

    chain = PipelineOrchestrator(issue_config).build_chain()
    with pytest.raises(ValueError):
        PipelineState.from_components(chain, {"name": "kmeans", "params": {}}, "clustering")


def test_validate():
    assert _valid_state().validate() == (True, [])

    invalid_cases = [
        {"feature_spec": {}},
        {"feature_spec": {"features": {"column": "Features", "dim": 0}}},
        {"trainer_config": {"params": {}}},
        {"trainer_config": {"name": "no_such_trainer", "params": {}}},
        {"trainer_config": {"name": "kmeans"}},
        {"task_type": "ranking"},
        {"task_type": "regression"},
        {"task_type": "multiclass", "label_column": "Label", "label_keys": ["only"]},
    ]
    for overrides in invalid_cases:
        is_valid, errors = _valid_state(**overrides).validate()
        assert not is_valid, overrides
        assert errors


def test_save_and_load(temp_dir):
    state = _valid_state(label_column="Label", label_keys=[], pipeline_config_path="configs/iris_clustering.yaml")
    path = temp_dir / "state" / "pipeline_state.json"
    state.save(path)

    loaded = PipelineState.load(path)
    assert loaded == state

    with pytest.raises(FileNotFoundError):
        PipelineState.load(temp_dir / "missing.json")
