"""
测试特征转换步骤

测试：
1. copy
2. one_hot（宽度、未见过的类别映射为全零向量）
3. featurize_text（宽度固定、未见过的 token 被忽略）
4. concatenate（按顺序拼接、非数值列报错）
5. map_value_to_key（首次出现顺序、未见过的取值为 -1）
6. build_step
"""

import numpy as np
import pytest

from mlsamples.data import Dataset
from mlsamples.data.features import (
    Concatenate,
    CopyColumn,
    FeaturizeText,
    MapValueToKey,
    OneHotEncode,
    build_step,
)
from mlsamples.data.logger import _warning_counter
from mlsamples.errors import InsufficientData, MissingColumn, SchemaMismatch


def _dataset(**columns):
    return Dataset({name: np.asarray(values, dtype=object if isinstance(values[0], str) else None) for name, values in columns.items()})


def test_copy_column():
    dataset = _dataset(Fare=[1.0, 2.5])
    step = CopyColumn("Fare", "Label")
    out = step.fit_apply(dataset)
    assert out.column("Label").tolist() == [1.0, 2.5]
    assert out.column("Fare").tolist() == [1.0, 2.5]
    assert step.width == 1
    assert step.describe() == {"op": "copy", "input": "Fare", "output": "Label"}


def test_one_hot_encode():
    """测试独热编码。"""
    print("=" * 60)
    print("测试 one_hot")
    print("=" * 60)

    train = _dataset(Vendor=["VTS", "CMT", "VTS", "DDS"])
    step = OneHotEncode("Vendor")
    encoded = step.fit_apply(train)

    assert step.width == 3
    assert step.categories == ["CMT", "DDS", "VTS"]
    matrix = encoded.column("Vendor")
    assert matrix.shape == (4, 3)
    assert np.allclose(matrix.sum(axis=1), 1.0)
    assert matrix[0].tolist() == [0.0, 0.0, 1.0]
    assert step.feature_names() == ["Vendor=CMT", "Vendor=DDS", "Vendor=VTS"]

    # 未见过的类别映射为全零向量
    unseen = step.apply(_dataset(Vendor=["XYZ", "CMT"])).column("Vendor")
    assert unseen[0].tolist() == [0.0, 0.0, 0.0]
    assert unseen[1].tolist() == [1.0, 0.0, 0.0]

    print("✓ one_hot 测试通过\n")


def test_unseen_category_warnings_share_one_counter():
    step = OneHotEncode("Vendor")
    step.fit(_dataset(Vendor=["VTS", "CMT"]))

    before = len(_warning_counter)
    step.apply(_dataset(Vendor=[f"V{i}" for i in range(200)]))
    assert len(_warning_counter) <= before + 1
    assert _warning_counter["unseen-category:Vendor"] >= 200


def test_one_hot_float_categories():
    dataset = Dataset({"Rate": np.array([1.0, 2.0, 1.0])})
    step = OneHotEncode("Rate", "RateEncoded")
    step.fit(dataset)
    assert step.categories == ["1", "2"]


def test_one_hot_empty_raises():
    step = OneHotEncode("Vendor")
    with pytest.raises(InsufficientData):
        step.fit(Dataset({"Vendor": np.array([], dtype=object)}))


def test_featurize_text():
    """测试文本向量化。"""
    print("=" * 60)
    print("测试 featurize_text")
    print("=" * 60)

    train = _dataset(Text=["I love this place", "This was a horrible meal", "Great food"])
    step = FeaturizeText("Text", "TextFeatures")
    out = step.fit_apply(train)

    matrix = out.column("TextFeatures")
    assert matrix.shape == (3, step.width)
    assert step.width == len(step.feature_names())
    assert np.all(np.isfinite(matrix))

    # 未见过的文本：宽度不变，全部 token 未见过时为零向量
    unseen = step.apply(_dataset(Text=["qqqq", "I LOVE this"])).column("TextFeatures")
    assert unseen.shape == (2, step.width)
    assert np.all(unseen[0] == 0.0)
    assert np.any(unseen[1] > 0.0)

    print(f"  特征宽度: {step.width}")
    print("✓ featurize_text 测试通过\n")


def test_featurize_text_is_case_insensitive():
    train = _dataset(Text=["Bad steak", "good pasta"])
    step = FeaturizeText("Text", "F")
    step.fit(train)
    upper = step.apply(_dataset(Text=["BAD STEAK"])).column("F")
    lower = step.apply(_dataset(Text=["bad steak"])).column("F")
    assert np.allclose(upper, lower)


def test_featurize_text_empty_vocabulary():
    step = FeaturizeText("Text", "F", char_ngrams=None)
    with pytest.raises(InsufficientData):
        step.fit(_dataset(Text=["", ""]))


def test_concatenate():
    dataset = Dataset({"A": np.array([1.0, 2.0]), "B": np.array([[3.0, 4.0], [5.0, 6.0]])})
    step = Concatenate(["B", "A"], "Features")
    out = step.fit_apply(dataset)
    assert step.width == 3
    assert step.input_widths == [2, 1]
    assert out.column("Features").tolist() == [[3.0, 4.0, 1.0], [5.0, 6.0, 2.0]]


def test_concatenate_rejects_text_and_missing_columns():
    dataset = _dataset(Text=["a", "b"])
    with pytest.raises(SchemaMismatch):
        Concatenate(["Text"]).fit(dataset)
    with pytest.raises(MissingColumn):
        Concatenate(["Nope"]).fit(dataset)
    with pytest.raises(ValueError):
        Concatenate([])


def test_map_value_to_key():
    """测试取值 -> key 映射。"""
    print("=" * 60)
    print("测试 map_value_to_key")
    print("=" * 60)

    step = MapValueToKey("Area", "Label")
    out = step.fit_apply(_dataset(Area=["net", "io", "net", "infra"]))

    assert step.values == ["net", "io", "infra"]
    assert step.num_keys == 3
    assert out.column("Label").tolist() == [0, 1, 0, 2]
    assert step.to_values([2, 0]) == ["infra", "net"]
    assert step.to_keys(np.array(["io", "gc"], dtype=object)).tolist() == [1, MapValueToKey.MISSING_KEY]

    print("✓ map_value_to_key 测试通过\n")


def test_apply_before_fit_raises():
    with pytest.raises(ValueError):
        OneHotEncode("Vendor").apply(_dataset(Vendor=["a"]))
    with pytest.raises(ValueError):
        _ = MapValueToKey("Area").width


def test_build_step():
    step = build_step({"op": "featurize_text", "input": "Title", "output": "TitleFeaturized"})
    assert isinstance(step, FeaturizeText)
    assert step.inputs == ["Title"]
    assert step.output == "TitleFeaturized"

    assert build_step({"op": "one_hot", "input": "Vendor"}).output == "Vendor"
    assert build_step({"op": "concatenate", "inputs": ["A", "B"]}).output == "Features"

    with pytest.raises(ValueError):
        build_step({"op": "normalize", "input": "A"})
    with pytest.raises(ValueError):
        build_step({"op": "copy", "source": "A"})
