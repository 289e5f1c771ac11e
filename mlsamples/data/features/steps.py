"""
特征转换步骤模块

提供：
- TransformStep: 转换步骤基类（fit / apply）
- CopyColumn: 复制/重命名列
- OneHotEncode: 类别独热编码
- FeaturizeText: 文本向量化（词 n-gram + 字符 n-gram 的 TF-IDF）
- Concatenate: 按顺序拼接多列为单个特征向量
- MapValueToKey: 取值 -> 整数 key 映射（及其逆映射）
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.preprocessing import OneHotEncoder

from ...errors import InsufficientData, SchemaMismatch
from ..dataset import Dataset
from ..logger import _logger, warn_n_times


class TransformStep(ABC):
    """转换步骤基类。

    子类实现 ``_fit``（学习统计量）和 ``_transform``（使用已拟合的统计量），
    基类负责输入列检查和拟合状态检查。
    """

    op: str = ""
    stateful: bool = True

    def __init__(self, inputs: list[str], output: str):
        self.inputs = list(inputs)
        self.output = output
        self._fitted = not self.stateful
        self._width: int | None = None

    @property
    def is_fitted(self) -> bool:
        return self._width is not None

    @property
    def width(self) -> int:
        """输出列宽度（拟合后可用）。"""
        if self._width is None:
            raise ValueError(f"Step '{self.op}' -> '{self.output}' not fitted. Call fit() first.")
        return self._width

    def fit(self, dataset: Dataset) -> TransformStep:
        """在训练数据上拟合。

        Args:
            dataset: 训练数据集

        Returns:
            TransformStep: self
        """
        values = [dataset.column(name) for name in self.inputs]
        self._fit(values)
        self._fitted = True
        self._width = self._output_width(values)
        _logger.debug(f"Fitted step {self.op}: {self.inputs} -> {self.output} (width={self._width})")
        return self

    def apply(self, dataset: Dataset) -> Dataset:
        """应用转换（只使用已拟合的统计量），返回添加输出列的新数据集。"""
        if not self._fitted:
            raise ValueError(f"Step '{self.op}' -> '{self.output}' not fitted. Call fit() first.")
        values = [dataset.column(name) for name in self.inputs]
        return dataset.with_column(self.output, self._transform(values))

    def fit_apply(self, dataset: Dataset) -> Dataset:
        return self.fit(dataset).apply(dataset)

    def feature_names(self) -> list[str]:
        """输出列中每一维的名称。"""
        if self.width == 1:
            return [self.output]
        return [f"{self.output}.{i}" for i in range(self.width)]

    def describe(self) -> dict[str, Any]:
        """步骤定义（与 from_config 互逆）。"""
        return {"op": self.op, "inputs": list(self.inputs), "output": self.output}

    def _fit(self, values: list[np.ndarray]) -> None:
        pass

    @abstractmethod
    def _output_width(self, values: list[np.ndarray]) -> int:
        pass

    @abstractmethod
    def _transform(self, values: list[np.ndarray]) -> np.ndarray:
        pass


class CopyColumn(TransformStep):
    """复制列（输出名不同于输入名时即为重命名）。"""

    op = "copy"
    stateful = False

    def __init__(self, input: str, output: str):
        super().__init__([input], output)

    def _output_width(self, values):
        return 1 if values[0].ndim == 1 else int(np.prod(values[0].shape[1:]))

    def _transform(self, values):
        return values[0].copy()

    def describe(self):
        return {"op": self.op, "input": self.inputs[0], "output": self.output}


class OneHotEncode(TransformStep):
    """类别独热编码。

    拟合时记录所有出现过的类别；应用时未见过的类别映射为全零向量
    （记录有限次数的警告，不视为错误）。
    """

    op = "one_hot"

    def __init__(self, input: str, output: str | None = None):
        super().__init__([input], output or input)
        self.encoder: OneHotEncoder | None = None

    @property
    def categories(self) -> list[str]:
        if self.encoder is None:
            return []
        return [str(c) for c in self.encoder.categories_[0]]

    @staticmethod
    def _as_strings(values: np.ndarray) -> np.ndarray:
        if values.ndim != 1:
            raise SchemaMismatch("One-hot encoding expects a scalar column")
        if values.dtype == np.float64:
            # 浮点类别（如 RateCode）按规范文本形式编码
            return np.array([str(int(v)) if float(v).is_integer() else repr(float(v)) for v in values], dtype=object).reshape(-1, 1)
        return values.astype(str).astype(object).reshape(-1, 1)

    def _fit(self, values):
        data = self._as_strings(values[0])
        if data.shape[0] == 0:
            raise InsufficientData(f"Cannot fit one-hot encoding for '{self.inputs[0]}' on an empty dataset")
        self.encoder = OneHotEncoder(handle_unknown="ignore", sparse_output=False, dtype=np.float64)
        self.encoder.fit(data)
        _logger.debug(f"One-hot '{self.inputs[0]}': {len(self.categories)} categories")

    def _output_width(self, values):
        return len(self.categories)

    def _transform(self, values):
        data = self._as_strings(values[0])
        if data.shape[0] == 0:
            return np.zeros((0, len(self.categories)), dtype=np.float64)
        known = set(self.categories)
        for value in data[:, 0]:
            if value not in known:
                warn_n_times(
                    f"Unseen category '{value}' in column '{self.inputs[0]}' encoded as zero vector",
                    key=f"unseen-category:{self.inputs[0]}",
                )
        return self.encoder.transform(data)

    def feature_names(self):
        return [f"{self.output}={c}" for c in self.categories]

    def describe(self):
        return {"op": self.op, "input": self.inputs[0], "output": self.output}


class FeaturizeText(TransformStep):
    """文本向量化。

    文本先归一化为小写，然后拼接词 n-gram 与字符 n-gram 的 TF-IDF 向量，
    两部分分别做 L2 归一化。词表和 IDF 权重在拟合时确定，应用时未见过的 token 被忽略。
    """

    op = "featurize_text"

    def __init__(
        self,
        input: str,
        output: str | None = None,
        word_ngrams: tuple[int, int] | list[int] = (1, 2),
        char_ngrams: tuple[int, int] | list[int] | None = (3, 3),
        max_features: int | None = None,
    ):
        super().__init__([input], output or f"{input}Featurized")
        self.word_ngrams = tuple(word_ngrams)
        self.char_ngrams = tuple(char_ngrams) if char_ngrams else None
        self.max_features = max_features
        self.vectorizers: list[TfidfVectorizer] = []

    def _build_vectorizers(self) -> list[TfidfVectorizer]:
        vectorizers = [
            TfidfVectorizer(
                analyzer="word",
                ngram_range=self.word_ngrams,
                lowercase=True,
                max_features=self.max_features,
                token_pattern=r"(?u)\b\w+\b",
            )
        ]
        if self.char_ngrams:
            vectorizers.append(
                TfidfVectorizer(
                    analyzer="char_wb",
                    ngram_range=self.char_ngrams,
                    lowercase=True,
                    max_features=self.max_features,
                )
            )
        return vectorizers

    @staticmethod
    def _as_texts(values: np.ndarray) -> list[str]:
        if values.ndim != 1:
            raise SchemaMismatch("Text featurization expects a scalar column")
        return ["" if v is None else str(v) for v in values]

    def _fit(self, values):
        texts = self._as_texts(values[0])
        self.vectorizers = self._build_vectorizers()
        for vectorizer in self.vectorizers:
            try:
                vectorizer.fit(texts)
            except ValueError as e:
                # 空词表（例如所有文本为空）
                raise InsufficientData(f"Cannot featurize text column '{self.inputs[0]}': {e}") from e
        _logger.debug(f"Text featurizer '{self.inputs[0]}': vocabulary sizes {[len(v.vocabulary_) for v in self.vectorizers]}")

    def _output_width(self, values):
        return sum(len(v.vocabulary_) for v in self.vectorizers)

    def _transform(self, values):
        texts = self._as_texts(values[0])
        if not texts:
            return np.zeros((0, sum(len(v.vocabulary_) for v in self.vectorizers)), dtype=np.float64)
        parts = [v.transform(texts).toarray() for v in self.vectorizers]
        return np.hstack(parts).astype(np.float64)

    def feature_names(self):
        names = []
        for vectorizer in self.vectorizers:
            prefix = "w" if vectorizer.analyzer == "word" else "c"
            names.extend(f"{self.output}.{prefix}:{t}" for t in vectorizer.get_feature_names_out())
        return names

    def describe(self):
        return {
            "op": self.op,
            "input": self.inputs[0],
            "output": self.output,
            "word_ngrams": list(self.word_ngrams),
            "char_ngrams": list(self.char_ngrams) if self.char_ngrams else None,
            "max_features": self.max_features,
        }


class Concatenate(TransformStep):
    """按给定顺序水平拼接数值列。

    拟合时记录每个输入的宽度，应用时宽度不一致视为错误。
    """

    op = "concatenate"

    def __init__(self, inputs: list[str], output: str = "Features"):
        if not inputs:
            raise ValueError("Concatenate requires at least one input column")
        super().__init__(inputs, output)
        self.input_widths: list[int] = []
        self.input_names: list[list[str]] = []

    def _as_matrix(self, name: str, values: np.ndarray) -> np.ndarray:
        if values.dtype == object:
            raise SchemaMismatch("Cannot concatenate non-numeric column; encode or featurize it first", column=name)
        matrix = values.astype(np.float64)
        return matrix.reshape(matrix.shape[0], -1)

    def _fit(self, values):
        self.input_widths = [self._as_matrix(n, v).shape[1] for n, v in zip(self.inputs, values)]

    def _output_width(self, values):
        return sum(self.input_widths)

    def _transform(self, values):
        matrices = [self._as_matrix(n, v) for n, v in zip(self.inputs, values)]
        widths = [m.shape[1] for m in matrices]
        if widths != self.input_widths:
            raise SchemaMismatch(f"Input widths {widths} differ from fitted widths {self.input_widths} for '{self.output}'")
        return np.hstack(matrices)


class MapValueToKey(TransformStep):
    """取值 -> 整数 key 映射。

    key 按拟合数据中首次出现的顺序分配（从 0 开始）；应用时未见过的取值映射为 -1。
    ``to_values`` 提供 key -> 取值的逆映射。
    """

    op = "map_value_to_key"
    MISSING_KEY = -1

    def __init__(self, input: str, output: str = "Label"):
        super().__init__([input], output)
        self.values: list[Any] = []
        self._index: dict[Any, int] = {}

    @staticmethod
    def _normalize(value: Any) -> Any:
        return value.item() if isinstance(value, np.generic) else value

    def _fit(self, values):
        seen: dict[Any, int] = {}
        for value in values[0]:
            value = self._normalize(value)
            if value not in seen:
                seen[value] = len(seen)
        self.values = list(seen)
        self._index = seen

    def _output_width(self, values):
        return 1

    def _transform(self, values):
        return self.to_keys(values[0])

    def to_keys(self, values) -> np.ndarray:
        """取值 -> key（未见过的取值为 MISSING_KEY）。"""
        return np.array([self._index.get(self._normalize(v), self.MISSING_KEY) for v in values], dtype=np.int64)

    def to_values(self, keys) -> list[Any]:
        """key -> 原始取值。"""
        return [self.values[int(k)] for k in keys]

    @property
    def num_keys(self) -> int:
        return len(self.values)

    def describe(self):
        return {"op": self.op, "input": self.inputs[0], "output": self.output}


STEP_TYPES: dict[str, type[TransformStep]] = {
    CopyColumn.op: CopyColumn,
    OneHotEncode.op: OneHotEncode,
    FeaturizeText.op: FeaturizeText,
    Concatenate.op: Concatenate,
    MapValueToKey.op: MapValueToKey,
}


def build_step(step_def: dict[str, Any]) -> TransformStep:
    """从配置字典构建转换步骤。

    Args:
        step_def: 形如 ``{"op": "one_hot", "input": "VendorId"}`` 的字典

    Returns:
        TransformStep: 未拟合的步骤
    """
    step_def = dict(step_def)
    op = step_def.pop("op", None)
    if op not in STEP_TYPES:
        raise ValueError(f"Unknown transform op '{op}'. Available ops: {', '.join(STEP_TYPES)}")
    try:
        return STEP_TYPES[op](**step_def)
    except TypeError as e:
        raise ValueError(f"Invalid arguments for transform op '{op}': {e}") from e
