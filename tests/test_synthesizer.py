"""
Tests for the type synthesizer: caching, short-circuiting of concrete
contracts, stub behaviour and thread safety.
"""

import asyncio
import inspect
import threading
import typing
from abc import ABC, abstractmethod
from typing import Protocol

import pytest

from concretizer.config import ConcretizerConfig, SynthesisConfig
from concretizer.errors import InvalidContract, NotImplementedInvocation, SynthesisUnavailable
from concretizer.synthesis.emitter import contract_of, is_synthesized
from concretizer.synthesis.synthesizer import TypeSynthesizer


class Shape(Protocol):
    def area(self) -> float:
        ...


class Animal(ABC):
    def __init__(self, name: str = "generic"):
        self.name = name

    @abstractmethod
    def speak(self) -> None:
        ...

    def eat(self) -> str:
        return f"{self.name} eats"


class Sensor(ABC):
    @property
    @abstractmethod
    def reading(self) -> float:
        """Latest reading."""

    @property
    @abstractmethod
    def threshold(self) -> float:
        ...

    @threshold.setter
    @abstractmethod
    def threshold(self, value: float) -> None:
        ...

    @abstractmethod
    async def poll(self, timeout: float) -> bytes:
        """Wait for the next sample."""

    def calibrate(self) -> str:
        return "ok"


class Point:
    def __init__(self):
        self.x = 0


class Square(Shape):
    pass


class Scalable(ABC):
    @abstractmethod
    def scale(self, factor: float) -> float:
        ...

    @abstractmethod
    def reset(self) -> None:
        ...


class LooseScalable(Scalable):
    def scale(self, factor):
        return factor * 2


class NeedsArguments(ABC):
    def __init__(self, required):
        self.required = required

    @abstractmethod
    def run(self) -> None:
        ...


def test_interface_scenario():
    """Shape: instance of a synthesized type whose area() is a stub."""
    synthesizer = TypeSynthesizer()
    shape = synthesizer.instantiate(Shape)

    assert Shape in type(shape).__mro__
    assert type(shape) is not Shape
    with pytest.raises(NotImplementedInvocation) as exc_info:
        shape.area()
    assert exc_info.value.member_name == "area"
    assert exc_info.value.type_name == "ShapeImpl"


def test_stub_is_a_not_implemented_error():
    """Stubs never silently succeed; they raise NotImplementedError."""
    animal = TypeSynthesizer().instantiate(Animal)

    with pytest.raises(NotImplementedError):
        animal.speak()


def test_inherited_concrete_members_are_kept():
    """Only obligations are stubbed; the contract's own behaviour survives."""
    animal = TypeSynthesizer().instantiate(Animal)

    assert isinstance(animal, Animal)
    assert animal.eat() == "generic eats"


def test_same_type_for_repeated_requests():
    synthesizer = TypeSynthesizer()
    first = synthesizer.instantiate(Animal)
    second = synthesizer.instantiate(Animal)

    assert first is not second
    assert type(first) is type(second)
    assert len(synthesizer) == 1
    assert synthesizer.lookup(Animal) is type(first)


def test_concurrent_requests_share_one_type():
    """Two threads asking for Animal at once get instances of one type."""
    synthesizer = TypeSynthesizer()
    barrier = threading.Barrier(8)
    results = []
    errors = []

    def request():
        try:
            barrier.wait()
            results.append(synthesizer.instantiate(Animal))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=request) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert len(results) == 8
    assert len({type(r) for r in results}) == 1
    assert synthesizer.synthesized_types() == {Animal: type(results[0])}


def test_concrete_contract_short_circuits():
    """A concrete class is instantiated directly and never cached."""
    synthesizer = TypeSynthesizer()
    point = synthesizer.instantiate(Point)

    assert type(point) is Point
    assert len(synthesizer) == 0
    assert Point not in synthesizer


def test_protocol_subclass_without_implementation_is_synthesized():
    """A class that inherits Protocol members it never implements gets stubs."""
    synthesizer = TypeSynthesizer()
    square = synthesizer.instantiate(Square)

    assert type(square) is not Square
    assert isinstance(square, Square)
    assert Square in synthesizer
    assert not synthesizer.is_concrete(Square)
    with pytest.raises(NotImplementedInvocation):
        square.area()


def test_unannotated_override_survives_synthesis():
    """Only the missing member is stubbed; the working override is kept."""
    scalable = TypeSynthesizer().instantiate(LooseScalable)

    assert scalable.scale(2) == 4
    with pytest.raises(NotImplementedInvocation):
        scalable.reset()


def test_separate_synthesizers_keep_separate_caches():
    first = TypeSynthesizer().resolve(Animal)
    second = TypeSynthesizer().resolve(Animal)

    assert first is not second


def test_synthesized_type_metadata():
    concrete = TypeSynthesizer().resolve(Animal)

    assert concrete.__name__ == "AnimalImpl"
    assert concrete.__module__ == "concretizer.synthesized"
    assert is_synthesized(concrete)
    assert contract_of(concrete) is Animal
    assert not is_synthesized(Animal)
    assert not inspect.isabstract(concrete)


def test_stub_keeps_signature_and_annotations():
    sensor_type = TypeSynthesizer().resolve(Sensor)
    poll = sensor_type.poll

    assert poll.__name__ == "poll"
    assert poll.__qualname__ == "SensorImpl.poll"
    assert poll.__doc__ == "Wait for the next sample."
    assert list(inspect.signature(poll).parameters) == ["self", "timeout"]
    assert typing.get_type_hints(poll) == {"timeout": float, "return": bytes}


def test_coroutine_stub():
    sensor = TypeSynthesizer().instantiate(Sensor)

    assert inspect.iscoroutinefunction(type(sensor).poll)
    with pytest.raises(NotImplementedInvocation):
        asyncio.run(sensor.poll(1.0))


def test_property_stubs():
    sensor = TypeSynthesizer().instantiate(Sensor)

    with pytest.raises(NotImplementedInvocation):
        sensor.reading
    with pytest.raises(NotImplementedInvocation):
        sensor.threshold
    with pytest.raises(NotImplementedInvocation):
        sensor.threshold = 2.0
    assert sensor.calibrate() == "ok"
    assert type(sensor).reading.__doc__ == "Latest reading."


def test_read_only_property_stub_has_no_setter():
    sensor = TypeSynthesizer().instantiate(Sensor)

    with pytest.raises(AttributeError):
        sensor.reading = 1.0


def test_constructor_arguments_are_forwarded():
    synthesizer = TypeSynthesizer()

    assert synthesizer.instantiate(Animal, "cat").eat() == "cat eats"
    assert synthesizer.instantiate(NeedsArguments, required=3).required == 3


def test_constructor_errors_propagate():
    """A contract without a default constructor cannot be default-constructed."""
    synthesizer = TypeSynthesizer()

    with pytest.raises(TypeError):
        synthesizer.instantiate(NeedsArguments)
    # The type itself was still synthesized and cached
    assert NeedsArguments in synthesizer


def test_missing_contract():
    with pytest.raises(InvalidContract):
        TypeSynthesizer().instantiate(None)


def test_non_class_contract():
    with pytest.raises(InvalidContract):
        TypeSynthesizer().instantiate(42)


def test_synthesis_disabled():
    config = ConcretizerConfig(synthesis=SynthesisConfig(enabled=False))
    synthesizer = TypeSynthesizer(config)

    with pytest.raises(SynthesisUnavailable):
        synthesizer.instantiate(Animal)
    assert len(synthesizer) == 0
    # Concrete contracts do not need synthesis
    assert type(synthesizer.instantiate(Point)) is Point


def test_custom_type_suffix_and_module():
    config = ConcretizerConfig(synthesis=SynthesisConfig(type_suffix="Stub", module="app.generated"))
    concrete = TypeSynthesizer(config).resolve(Shape)

    assert concrete.__qualname__ == "ShapeStub"
    assert concrete.__module__ == "app.generated"


def test_source_strategy():
    """The source emitter yields the same behaviour as the runtime emitter."""
    config = ConcretizerConfig(synthesis=SynthesisConfig(strategy="source"))
    synthesizer = TypeSynthesizer(config)
    sensor = synthesizer.instantiate(Sensor)

    assert contract_of(type(sensor)) is Sensor
    assert sensor.calibrate() == "ok"
    with pytest.raises(NotImplementedInvocation):
        sensor.reading
    with pytest.raises(NotImplementedInvocation):
        asyncio.run(sensor.poll(0.5))
    assert typing.get_type_hints(type(sensor).poll) == {"timeout": float, "return": bytes}
