"""Input bindings, composites of bindings, and actions that aggregate them."""

from __future__ import annotations

import abc
import struct
from numbers import Real
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from thera import clog
from thera.events import Event
from thera.inputdefs import Component, Output, Precision
from thera.mathutil import elementwise_max

Poller = Callable[[Output, Precision], Union[float, Sequence[float]]]

# kind -> (required output, requires double precision)
_KINDS = {
    "float": (Output.SCALAR, False),
    "double": (Output.SCALAR, True),
    "vec2": (Output.VECTOR2, False),
    "dvec2": (Output.VECTOR2, True),
    "vec3": (Output.VECTOR3, False),
    "dvec3": (Output.VECTOR3, True),
}

_OUTPUT_LABELS = {Output.SCALAR: "scalar", Output.VECTOR2: "Vector2", Output.VECTOR3: "Vector3"}

_FLOAT = struct.Struct("<f")


def _to_single(value: float) -> float:
    return _FLOAT.unpack(_FLOAT.pack(value))[0]


class DataHandler(abc.ABC):
    """Base for input objects that hold and poll their own data."""

    def __init__(self, output: Output, precision: Precision) -> None:
        self.output = Output(output)
        self.precision = Precision(precision)
        self._values: tuple[float, ...] = (0.0,) * int(self.output)
        self.last_update: Optional[int] = None
        self.frame_source: Optional[Callable[[], int]] = None
        """Optional frame counter; when set, try_poll polls at most once per frame."""

    @property
    def data(self) -> tuple[float, ...]:
        """The raw stored components, without polling."""
        return self._values

    def _store(self, values: Iterable[float]) -> None:
        values = tuple(float(v) for v in values)
        if len(values) != int(self.output):
            raise ValueError(
                f"expected {int(self.output)} components, got {len(values)}"
            )
        if self.precision is Precision.SINGLE:
            values = tuple(_to_single(v) for v in values)
        self._values = values

    def _due(self) -> bool:
        if self.frame_source is None:
            return True
        frame = self.frame_source()
        if frame == self.last_update:
            return False
        self.last_update = frame
        return True

    @abc.abstractmethod
    def try_poll(self) -> None:
        """Refresh the data if it is out of date."""

    @abc.abstractmethod
    def force_poll(self) -> None:
        """Refresh the data unconditionally."""

    def get_data(self, kind: str, truncate: bool = False) -> Any:
        """Return the data as 'float', 'double', 'vec2', 'dvec2', 'vec3', 'dvec3' or 'raw'.

        Vector kinds come back as tuples. 'raw' returns the stored
        components without polling.
        """
        if kind == "raw":
            return self._values
        try:
            output, wants_double = _KINDS[kind]
        except KeyError:
            raise ValueError(f"unknown data kind {kind!r}") from None
        clog.ccx_assert(
            self.output is output,
            f"{kind} output only supported by {_OUTPUT_LABELS[output]} bindings.",
        )
        if wants_double:
            clog.ccx_assert(
                self.precision is Precision.DOUBLE, "Cannot convert float to double"
            )
        elif not truncate and self.precision is Precision.DOUBLE:
            clog.warning("Undeclared truncation of double to float.")
        self.try_poll()
        values = self._values
        if not wants_double:
            values = tuple(_to_single(v) for v in values)
        return values[0] if output is Output.SCALAR else values


class MasterBinding(DataHandler):
    """Primary handler for a built-in input such as a key or mouse axis."""

    def __init__(
        self, output: Output, precision: Precision, poller: Optional[Poller] = None
    ) -> None:
        super().__init__(output, precision)
        self._poller = poller
        self._instances: list[BindingInstance] = []

    @property
    def instances(self) -> tuple[BindingInstance, ...]:
        return tuple(self._instances)

    def _poll(self) -> None:
        if self._poller is None:
            return
        result = self._poller(self.output, self.precision)
        if isinstance(result, Real):
            result = (result,)
        self._store(result)

    def try_poll(self) -> None:
        if self._poller is not None and self._due():
            self._poll()

    def force_poll(self) -> None:
        self._poll()

    def create_instance(self, bind_to: Optional[Action] = None) -> BindingInstance:
        """Create an instance of this binding, adding it to bind_to if given."""
        instance = BindingInstance(self, bind_to)
        self._instances.append(instance)
        if bind_to is not None:
            bind_to.add_binding(instance)
        return instance

    def remove_instance(self, instance: BindingInstance) -> None:
        if instance in self._instances:
            self._instances.remove(instance)

    def clear_instances(self) -> None:
        self._instances.clear()


class BindingInstance:
    """One use of a MasterBinding, optionally bound to an action."""

    def __init__(self, master: MasterBinding, bound_action: Optional[Action] = None) -> None:
        self.master = master
        self.bound_action = bound_action

    def get_data(self, kind: str, truncate: bool = False) -> Any:
        return self.master.get_data(kind, truncate)


class Constituent:
    """A binding and the signed components it feeds within a composite."""

    def __init__(
        self, binding: BindingInstance, indices: Iterable[Union[Component, int]]
    ) -> None:
        indices = tuple(int(Component(i)) for i in indices)
        clog.ccx_assert(
            len(indices) <= int(binding.master.output),
            "Too many indices for binding output type.",
        )
        self.binding = binding
        self.indices = indices


class CompositeBinding(DataHandler):
    """Several bindings combined into one value with the API of a single binding."""

    def __init__(
        self,
        bind_to: Action,
        output: Output,
        precision: Precision,
        constituents: Iterable[Constituent],
    ) -> None:
        super().__init__(output, precision)
        clog.ccx_assert(bind_to is not None, "bindTo cannot be None.")
        self.bound_action = bind_to
        self._constituents = list(constituents)
        self._validate_constituents()
        bind_to.add_binding(self)

    @property
    def constituents(self) -> tuple[Constituent, ...]:
        return tuple(self._constituents)

    def _validate_constituents(self) -> None:
        for constituent in self._constituents:
            for component in constituent.indices:
                clog.ccx_assert(
                    component // 2 < int(self.output),
                    f"Component {Component(component).name} exceeds composite output type.",
                )

    def _poll(self, force: bool) -> None:
        totals = [0.0] * int(self.output)
        for constituent in self._constituents:
            master = constituent.binding.master
            if force:
                master.force_poll()
            else:
                master.try_poll()
            for value, component in zip(master.data, constituent.indices):
                axis, positive = divmod(component, 2)
                totals[axis] += value if positive else -value
        self._store(totals)

    def try_poll(self) -> None:
        if self._due():
            self._poll(False)

    def force_poll(self) -> None:
        self._poll(True)


class Action:
    """Aggregates bindings and composites; reads as their largest value."""

    def __init__(self, output: Output, precision: Precision = Precision.DOUBLE) -> None:
        self.output = Output(output)
        self.precision = Precision(precision)
        self._bindings: list[BindingInstance] = []
        self._composites: list[CompositeBinding] = []
        self.on_start = Event()
        self.on_repeat = Event()
        self.on_end = Event()

    @property
    def bindings(self) -> tuple[Union[BindingInstance, CompositeBinding], ...]:
        return (*self._bindings, *self._composites)

    def add_binding(self, binding: Union[BindingInstance, CompositeBinding]) -> None:
        """Add a binding instance or composite whose output matches this action."""
        if isinstance(binding, CompositeBinding):
            output, target = binding.output, self._composites
        elif isinstance(binding, BindingInstance):
            output, target = binding.master.output, self._bindings
        else:
            raise TypeError("binding must be a BindingInstance or CompositeBinding")
        clog.ccx_assert(
            output is self.output, "Binding output type does not match the action."
        )
        if binding not in target:
            target.append(binding)

    def get_data(self, kind: str, truncate: bool = False) -> Any:
        """Return the component-wise maximum over all bindings."""
        sources = self.bindings
        if not sources:
            raise ValueError("action has no bindings")
        result = sources[0].get_data(kind, truncate)
        for source in sources[1:]:
            result = elementwise_max(result, source.get_data(kind, truncate))
        return result