"""
Тесты для FixedArray (композит фиксированной длины)

Проверяет:
1. Параметризацию и кэширование классов
2. Конструирование и отказ при несовпадении формы
3. Операции с семантикой значений на любой глубине вложенности
4. normalized / clamp / scal_mul
5. Протокол последовательности, равенство, копирование, pickle, numpy
"""

import copy
import logging
import math
import pickle
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from arrayspace.core.exceptions import (
    InvalidClampRangeError,
    PrecisionMismatchError,
    ShapeMismatchError,
    UnsupportedElementTypeError,
)
from arrayspace.core.math.array import (
    FixedArray,
    array_type,
    array_type_for_shape,
    is_array_type,
    is_vector_space_type,
)
from arrayspace.core.math.scalar import F32, F64

Vec2 = FixedArray[F64, 2]
Vec3 = FixedArray[F64, 3]
Mat2f = FixedArray[FixedArray[F32, 2], 2]
Cube2 = FixedArray[FixedArray[FixedArray[F64, 2], 2], 2]


def leaves(value: list) -> list:
    """Листья вложенного списка в порядке индексов."""
    if isinstance(value, list):
        return [leaf for item in value for leaf in leaves(item)]
    return [value]


# =============================================================================
# ТЕСТЫ ПАРАМЕТРИЗАЦИИ
# =============================================================================


class TestParameterization:
    """FixedArray[V, N]"""

    def test_cached(self) -> None:
        """Одинаковая параметризация даёт тот же класс"""
        assert FixedArray[F64, 2] is Vec2
        assert array_type(F64, 2) is Vec2
        assert FixedArray[FixedArray[F32, 2], 2] is Mat2f

    def test_concurrent_parameterization_single_class(self) -> None:
        """Параллельная первая параметризация создаёт ровно один класс"""

        class SlowHandler(logging.Handler):
            # Медленный обработчик расширяет окно гонки при создании класса
            def emit(self, record: logging.LogRecord) -> None:
                time.sleep(0.05)

        array_logger = logging.getLogger("arrayspace.core.math.array")
        handler = SlowHandler(level=logging.DEBUG)
        previous_level = array_logger.level
        array_logger.addHandler(handler)
        array_logger.setLevel(logging.DEBUG)

        workers = 8
        barrier = threading.Barrier(workers)

        def parameterize() -> type:
            barrier.wait()
            return array_type(F64, 9973)

        try:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                classes = list(pool.map(lambda _: parameterize(), range(workers)))
        finally:
            array_logger.removeHandler(handler)
            array_logger.setLevel(previous_level)

        assert len({id(cls) for cls in classes}) == 1
        assert classes[0] is FixedArray[F64, 9973]
        x = classes[-1].full(0.5)
        assert type(pickle.loads(pickle.dumps(x))) is classes[0]

    def test_class_attributes(self) -> None:
        assert Vec3.element_type is F64
        assert Vec3.length == 3
        assert Vec3.scalar_type is F64
        assert Vec3.dtype is np.float64
        assert Vec3.shape == (3,)

    def test_nested_attributes(self) -> None:
        assert Mat2f.element_type is FixedArray[F32, 2]
        assert Mat2f.scalar_type is F32
        assert Mat2f.dtype is np.float32
        assert Mat2f.shape == (2, 2)
        assert Cube2.shape == (2, 2, 2)

    def test_name(self) -> None:
        assert Vec2.__name__ == "FixedArray[F64, 2]"
        assert Mat2f.__name__ == "FixedArray[FixedArray[F32, 2], 2]"

    def test_array_type_for_shape(self) -> None:
        assert array_type_for_shape(F32, (2, 2)) is Mat2f
        assert array_type_for_shape(F64, (2, 2, 2)) is Cube2

    def test_array_type_for_shape_rejects_empty(self) -> None:
        with pytest.raises(UnsupportedElementTypeError):
            array_type_for_shape(F64, ())

    def test_membership(self) -> None:
        assert is_vector_space_type(F64)
        assert is_vector_space_type(Mat2f)
        assert is_array_type(Vec2)
        assert not is_array_type(FixedArray)
        assert not is_vector_space_type(float)

    @pytest.mark.parametrize("element", [float, int, np.float64, list, "F64"])
    def test_unsupported_element_type(self, element: object) -> None:
        with pytest.raises(UnsupportedElementTypeError):
            FixedArray[element, 2]

    @pytest.mark.parametrize("length", [-1, 2.0, True, "2"])
    def test_invalid_length(self, length: object) -> None:
        with pytest.raises(UnsupportedElementTypeError):
            FixedArray[F64, length]

    def test_requires_two_parameters(self) -> None:
        with pytest.raises(TypeError):
            FixedArray[F64]

    def test_unparameterized_not_instantiable(self) -> None:
        with pytest.raises(UnsupportedElementTypeError):
            FixedArray([1.0, 2.0])

    def test_zero_length(self) -> None:
        """[T; 0] допустим: dot == 0"""
        Empty = FixedArray[F64, 0]
        x = Empty([])
        assert len(x) == 0
        assert x.dot(x) == 0.0
        assert x.add(x) == Empty([])


# =============================================================================
# ТЕСТЫ КОНСТРУИРОВАНИЯ
# =============================================================================


class TestConstruction:
    """Конструирование и проверка формы"""

    def test_from_list(self) -> None:
        x = Vec2([3.0, 4.0])
        assert x.to_list() == [3.0, 4.0]
        assert all(isinstance(item, F64) for item in x)

    def test_from_tuple_and_ints(self) -> None:
        assert Vec2((1, 2)).to_list() == [1.0, 2.0]

    def test_nested(self) -> None:
        m = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        assert m.to_list() == [[1.0, 2.0], [3.0, 4.0]]
        assert isinstance(m[0], FixedArray[F32, 2])

    def test_wrong_length(self) -> None:
        with pytest.raises(ShapeMismatchError, match="length 3"):
            Vec2([1.0, 2.0, 3.0])

    def test_wrong_inner_length(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Mat2f([[1.0, 2.0], [3.0]])

    def test_scalar_where_array_expected(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Mat2f([1.0, 2.0])
        with pytest.raises(ShapeMismatchError):
            Vec2(1.0)
        with pytest.raises(ShapeMismatchError):
            Vec2("ab")

    def test_array_where_scalar_expected(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Vec2([[1.0], [2.0]])

    def test_from_other_array_copies(self) -> None:
        a = Vec2([1.0, 2.0])
        b = Vec2(a)
        b.mut_scal_mul(10.0)
        assert a.to_list() == [1.0, 2.0]

    def test_from_array_of_other_shape(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Vec2(Vec3([1.0, 2.0, 3.0]))

    def test_from_array_of_other_precision(self) -> None:
        with pytest.raises(PrecisionMismatchError):
            FixedArray[F32, 2](Vec2([1.0, 2.0]))

    def test_elements_not_shared(self) -> None:
        """Переданные листья копируются"""
        leaf = F64(1.0)
        x = Vec2([leaf, leaf])
        x.mut_scal_mul(3.0)
        assert leaf == 1.0

    def test_full_and_zeros(self) -> None:
        assert Mat2f.zeros().to_list() == [[0.0, 0.0], [0.0, 0.0]]
        assert Cube2.full(1.5).to_list() == [[[1.5, 1.5], [1.5, 1.5]], [[1.5, 1.5], [1.5, 1.5]]]

    def test_full_rejects_other_precision(self) -> None:
        with pytest.raises(PrecisionMismatchError):
            Mat2f.full(np.float64(1.0))


# =============================================================================
# ТЕСТЫ ОПЕРАЦИЙ С СЕМАНТИКОЙ ЗНАЧЕНИЙ
# =============================================================================


class TestValueOperations:
    """ArrayVectorSpace на композитах"""

    def test_dot(self) -> None:
        assert Vec3([1.0, 2.0, 3.0]).dot(Vec3([4.0, 5.0, 6.0])) == 32.0

    def test_dot_returns_leaf_scalar(self) -> None:
        m = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        result = m.dot(m)
        assert isinstance(result, np.float32)
        assert result == 30.0

    def test_dot_index_order(self) -> None:
        """Суммирование слева направо, начиная с нуля"""
        x = FixedArray[F64, 4]([1.0, 1e16, -1e16, 1.0])
        ones = FixedArray[F64, 4].full(1.0)
        assert x.dot(ones) == 1.0

    @pytest.mark.parametrize(
        "x",
        [
            Vec3([1.0, -2.0, 0.5]),
            Mat2f([[1.0, 2.0], [3.0, 4.0]]),
            Mat2f([[0.1, 0.2], [0.3, 0.7]]),
            Cube2([[[1.0, 2.0], [3.0, 4.0]], [[-5.0, 6.0], [7.0, 0.125]]]),
        ],
    )
    def test_norm2_equals_self_dot(self, x: FixedArray) -> None:
        """norm2 == dot(x, x) на любой глубине"""
        assert x.norm2() == x.dot(x)
        for element in x:
            assert element.norm2() == element.dot(element)

    def test_nested_add(self) -> None:
        """Рекурсия одинакова на глубине 2"""
        x = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        y = Mat2f.full(1.0)
        assert x.add(y).to_list() == [[2.0, 3.0], [4.0, 5.0]]

    def test_elementwise_operations(self) -> None:
        x = Vec2([6.0, 8.0])
        y = Vec2([2.0, 4.0])
        assert x.add(y).to_list() == [8.0, 12.0]
        assert x.sub(y).to_list() == [4.0, 4.0]
        assert x.mul(y).to_list() == [12.0, 32.0]
        assert x.div(y).to_list() == [3.0, 2.0]

    def test_division_by_zero_propagates(self) -> None:
        result = Vec2([1.0, 0.0]).div(Vec2([0.0, 0.0]))
        assert math.isinf(result[0].value)
        assert math.isnan(result[1].value)

    def test_operands_not_mutated(self) -> None:
        x = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        y = Mat2f.full(2.0)
        x.add(y)
        x.mul(y)
        x.scal_mul(5.0)
        x.clamp(0.0, 1.0)
        x.normalized()
        assert x.to_list() == [[1.0, 2.0], [3.0, 4.0]]
        assert y.to_list() == [[2.0, 2.0], [2.0, 2.0]]

    def test_result_independent_of_operands(self) -> None:
        x = Vec2([1.0, 2.0])
        result = x.add(Vec2.zeros())
        result.mut_scal_mul(100.0)
        assert x.to_list() == [1.0, 2.0]

    def test_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ShapeMismatchError) as exc_info:
            Vec2([1.0, 2.0]).add(Vec3([1.0, 2.0, 3.0]))
        assert exc_info.value.expected == (2,)
        assert exc_info.value.actual == (3,)

    def test_nested_shape_mismatch_rejected(self) -> None:
        Mat23 = FixedArray[FixedArray[F32, 3], 2]
        with pytest.raises(ShapeMismatchError):
            Mat2f.zeros().dot(Mat23.zeros())

    def test_precision_mismatch_rejected(self) -> None:
        with pytest.raises(PrecisionMismatchError):
            Vec2.zeros().add(FixedArray[F32, 2].zeros())
        with pytest.raises(PrecisionMismatchError):
            Mat2f.zeros().scal_mul(np.float64(2.0))

    def test_non_array_operand_rejected(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Vec2.zeros().add([1.0, 2.0])
        with pytest.raises(ShapeMismatchError):
            Vec2.zeros().mul(F64(1.0))


class TestScalMul:
    """scal_mul распределяется по всем листьям"""

    @pytest.mark.parametrize("k", [2.0, -0.5, 0.1, 3.0])
    def test_distributes_to_every_leaf(self, k: float) -> None:
        values = [[[0.1, 0.2], [0.3, 0.4]], [[-1.5, 2.5], [1e-3, 7.0]]]
        x = FixedArray[FixedArray[FixedArray[F32, 2], 2], 2](values)
        expected = [np.float32(v) * np.float32(k) for v in leaves(values)]
        assert leaves(x.scal_mul(k).to_list()) == [float(v) for v in expected]

    def test_operator_forms(self) -> None:
        x = Vec2([1.0, 2.0])
        assert (x * 2.0) == x.scal_mul(2.0)
        assert (2.0 * x) == x.scal_mul(2.0)
        assert (np.float64(2.0) * x) == x.scal_mul(2.0)

    def test_leaf_as_scalar_operand(self) -> None:
        """Лист той же точности в `*` с композитом работает как скаляр"""
        x = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        expected = x.scal_mul(2.0)
        assert x * F32(2.0) == expected
        assert F32(2.0) * x == expected
        assert x * F32(2.0) == x.scal_mul(F32(2.0))

    def test_leaf_operand_other_precision(self) -> None:
        with pytest.raises(PrecisionMismatchError):
            Mat2f.full(1.0) * F64(2.0)
        with pytest.raises(PrecisionMismatchError):
            F64(2.0) * Mat2f.full(1.0)

    def test_leaf_times_leaf_is_mul(self) -> None:
        assert F64(3.0) * F64(2.0) == F64(3.0).mul(F64(2.0))


class TestClamp:
    """clamp на композитах"""

    def test_example(self) -> None:
        x = FixedArray[F64, 3]([-1.0, 0.5, 2.0])
        assert x.clamp(0.0, 1.0).to_list() == [0.0, 0.5, 1.0]

    def test_nested(self) -> None:
        m = Mat2f([[-3.0, 0.25], [0.75, 9.0]])
        assert m.clamp(0.0, 1.0).to_list() == [[0.0, 0.25], [0.75, 1.0]]

    @pytest.mark.parametrize("lo,hi", [(0.0, 1.0), (-0.5, 0.5), (2.0, 2.0)])
    def test_matches_max_min(self, lo: float, hi: float) -> None:
        values = [-1.0, -0.25, 0.0, 0.3, 1.7, 2.0]
        x = FixedArray[F64, 6](values)
        assert x.clamp(lo, hi).to_list() == [max(lo, min(e, hi)) for e in values]

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(InvalidClampRangeError):
            Vec2.zeros().clamp(1.0, 0.0)

    def test_inverted_range_rejected_for_zero_length(self) -> None:
        """Границы проверяются до обхода элементов, даже если их нет"""
        Empty = FixedArray[F64, 0]
        with pytest.raises(InvalidClampRangeError):
            Empty([]).clamp(1.0, 0.0)
        with pytest.raises(InvalidClampRangeError):
            Empty([]).mut_clamp(1.0, 0.0)
        assert Empty([]).clamp(0.0, 1.0) == Empty([])


class TestNormalized:
    """normalized на композитах"""

    def test_example(self) -> None:
        """[3, 4] → [0.6, 0.8]"""
        result = Vec2([3.0, 4.0]).normalized()
        assert result.to_list() == pytest.approx([0.6, 0.8])
        assert result.norm2() == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "x",
        [
            Vec3([1.0, 2.0, 3.0]),
            Mat2f([[1.0, -2.0], [0.5, 4.0]]),
            Cube2([[[1e-3, 2.0], [3.0, 4.0]], [[-5.0, 6.0], [7.0, 8.0]]]),
        ],
    )
    def test_unit_norm(self, x: FixedArray) -> None:
        """norm2(normalized) ≈ 1 при norm2 > 0"""
        assert float(x.normalized().norm2()) == pytest.approx(1.0, rel=1e-6)

    def test_formula(self) -> None:
        """normalized == scal_mul(1 / sqrt(norm2))"""
        x = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        n = np.sqrt(x.norm2())
        assert x.normalized() == x.scal_mul(np.float32(1.0) / n)

    def test_zero_vector_is_nan(self, caplog: pytest.LogCaptureFixture) -> None:
        """Нулевой вектор: NaN без исключения, WARNING в лог"""
        with caplog.at_level(logging.WARNING, logger="arrayspace.core.math.array"):
            result = Vec2.zeros().normalized()
        assert all(math.isnan(v) for v in result.to_list())
        assert "degenerate norm" in caplog.text

    def test_cannot_be_overridden(self) -> None:
        """Производные операции композита финальны"""
        with pytest.raises(TypeError, match="normalized"):

            class BadVec(FixedArray[F64, 2]):
                def normalized(self):  # type: ignore[override]
                    return self

        with pytest.raises(TypeError, match="mut_normalized"):

            class BadMutVec(FixedArray[F64, 2]):
                def mut_normalized(self) -> None:
                    pass


# =============================================================================
# ТЕСТЫ ПРОТОКОЛА
# =============================================================================


class TestProtocol:
    """Последовательность, равенство, копирование"""

    def test_sequence(self) -> None:
        x = Vec3([1.0, 2.0, 3.0])
        assert len(x) == 3
        assert [float(v) for v in x] == [1.0, 2.0, 3.0]
        assert x[1] == 2.0
        assert x[-1] == 3.0

    def test_setitem_coerces(self) -> None:
        m = Mat2f.zeros()
        m[1] = [5.0, 6.0]
        assert m.to_list() == [[0.0, 0.0], [5.0, 6.0]]
        with pytest.raises(ShapeMismatchError):
            m[0] = [1.0]

    def test_setitem_numpy_index(self) -> None:
        x = Vec3.zeros()
        x[np.int64(1)] = 2.0
        x[np.intp(-1)] = 3.0
        assert x.to_list() == [0.0, 2.0, 3.0]
        assert x[np.int64(1)] == 2.0

    def test_setitem_rejects_non_integer_index(self) -> None:
        x = Vec3.zeros()
        with pytest.raises(TypeError, match="integer index"):
            x[1.0] = 2.0
        with pytest.raises(TypeError, match="integer index"):
            x[0:2] = [1.0, 2.0]

    def test_getitem_is_live_element(self) -> None:
        m = Mat2f.zeros()
        m[0].mut_add(FixedArray[F32, 2].full(1.0))
        assert m.to_list() == [[1.0, 1.0], [0.0, 0.0]]

    def test_equality(self) -> None:
        assert Vec2([1.0, 2.0]) == Vec2([1.0, 2.0])
        assert Vec2([1.0, 2.0]) != Vec2([1.0, 3.0])
        assert Vec2([1.0, 2.0]) != FixedArray[F32, 2]([1.0, 2.0])
        assert Vec2([1.0, 2.0]) != Vec3([1.0, 2.0, 0.0])
        assert Vec2([1.0, 2.0]) != [1.0, 2.0]

    def test_unhashable(self) -> None:
        with pytest.raises(TypeError):
            hash(Vec2.zeros())

    def test_repr(self) -> None:
        assert repr(Vec2([0.5, 1.0])) == "FixedArray[F64, 2]([0.5, 1.0])"

    def test_copy_is_deep(self) -> None:
        m = Mat2f([[1.0, 2.0], [3.0, 4.0]])
        for clone in (m.copy(), copy.copy(m), copy.deepcopy(m)):
            clone.mut_scal_mul(0.0)
            assert m.to_list() == [[1.0, 2.0], [3.0, 4.0]]

    def test_pickle_dynamic_type(self) -> None:
        m = Cube2.full(0.25)
        restored = pickle.loads(pickle.dumps(m))
        assert type(restored) is Cube2
        assert restored == m

    def test_user_subclass(self) -> None:
        """Подкласс совместим с базовой формой"""

        class Point(FixedArray[F64, 2]):
            __slots__ = ()

        p = Point([1.0, 2.0])
        result = p.add(Vec2([1.0, 1.0]))
        assert type(result) is Point
        assert result.to_list() == [2.0, 3.0]

    def test_is_close(self) -> None:
        x = Mat2f([[0.1, 0.2], [0.3, 0.4]])
        y = Mat2f([[0.1, 0.2], [0.3, 0.4000001]])
        assert x.is_close(y)
        assert not x.is_close(Mat2f.zeros())

    def test_operators(self) -> None:
        x = Vec2([6.0, 8.0])
        y = Vec2([2.0, 4.0])
        assert x + y == x.add(y)
        assert x - y == x.sub(y)
        assert x * y == x.mul(y)
        assert x / y == x.div(y)


class TestNumpyInterop:
    """to_numpy / from_numpy"""

    def test_to_numpy(self) -> None:
        arr = Mat2f([[1.0, 2.0], [3.0, 4.0]]).to_numpy()
        assert arr.dtype == np.float32
        assert arr.shape == (2, 2)
        assert arr.tolist() == [[1.0, 2.0], [3.0, 4.0]]

    def test_from_numpy(self) -> None:
        arr = np.arange(8, dtype=np.float64).reshape(2, 2, 2)
        x = Cube2.from_numpy(arr)
        assert x.to_list() == arr.tolist()

    def test_from_numpy_wrong_shape(self) -> None:
        with pytest.raises(ShapeMismatchError):
            Mat2f.from_numpy(np.zeros((2, 3), dtype=np.float32))

    def test_from_numpy_wrong_precision(self) -> None:
        with pytest.raises(PrecisionMismatchError):
            Mat2f.from_numpy(np.zeros((2, 2), dtype=np.float64))

    def test_roundtrip_float32_bits(self) -> None:
        arr = np.array([[0.1, 0.2], [0.3, 0.7]], dtype=np.float32)
        assert Mat2f.from_numpy(arr).to_numpy().tobytes() == arr.tobytes()
