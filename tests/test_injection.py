import pytest
from assertive import (
    assert_that,
    has_length,
    is_exact_type,
    is_none,
    is_same_instance_as,
    raises_exception,
)

from expressway import (
    ArgumentResolver,
    CallError,
    Factory,
    InvalidCallTargetError,
    Invoker,
    MissingServiceError,
    ServiceRegistry,
    injects,
)


def create_invoker(**services) -> Invoker:
    registry = ServiceRegistry()
    for name, value in services.items():
        registry.register(name, value)
    return Invoker(ArgumentResolver(registry))


def test_parameter_named_like_a_service_receives_it_regardless_of_position():
    invoker = create_invoker(foo=42, bar="bar", baz="baz")

    def first(foo, bar, baz):
        return foo

    def middle(bar, foo, baz):
        return foo

    def last(bar, baz, foo):
        return foo

    assert_that(invoker.call(first)).matches(42)
    assert_that(invoker.call(middle)).matches(42)
    assert_that(invoker.call(last)).matches(42)


def test_positional_override_takes_precedence_and_rest_is_resolved():
    invoker = create_invoker(b=20)

    def add(a, b):
        return a + b

    assert_that(invoker.call(add, None, [10])).matches(30)


def test_missing_service_for_unoverridden_parameter_fails():
    invoker = create_invoker()

    def fn(a, b):
        return a, b

    with pytest.raises(MissingServiceError) as exc_info:
        invoker.call(fn, None, [10])

    assert_that(exc_info.value.name).matches("b")
    assert_that(exc_info.value.chain).matches(has_length(1))
    assert_that(exc_info.value.chain[0].parameter).matches("b")
    assert "fn" in str(exc_info.value)


def test_override_with_falsy_value_is_still_used():
    invoker = create_invoker(a="from registry")

    def fn(a):
        return a

    assert_that(invoker.call(fn, None, [0])).matches(0)
    assert_that(invoker.call(fn, None, [None])).matches(is_none())


def test_named_overrides_are_used_by_parameter_name():
    invoker = create_invoker(a=1)

    def fn(a, b):
        return a, b

    assert_that(invoker.call(fn, b=2)).matches((1, 2))


def test_parameter_default_is_used_when_service_is_missing():
    invoker = create_invoker(a=1)

    def fn(a, b="default"):
        return a, b

    assert_that(invoker.call(fn)).matches((1, "default"))


def test_registered_service_wins_over_parameter_default():
    invoker = create_invoker(b="service")

    def fn(b="default"):
        return b

    assert_that(invoker.call(fn)).matches("service")


def test_var_args_and_keyword_only_parameters():
    invoker = create_invoker(a=1, b=2)

    def fn(a, *args, b, **kwargs):
        return a, args, b, kwargs

    assert_that(invoker.call(fn)).matches((1, (), 2, {}))


def test_class_target_is_constructed_with_injected_init():
    class Repository:
        def __init__(self, db):
            self.db = db

    invoker = create_invoker(db="connection")

    repository = invoker.call(Repository)

    assert_that(repository).matches(is_exact_type(Repository))
    assert_that(repository.db).matches("connection")


def test_class_without_init_is_constructed():
    class Plain:
        pass

    assert_that(create_invoker().call(Plain)).matches(is_exact_type(Plain))


def test_object_method_is_called_bound_to_the_object():
    class Controller:
        def __init__(self):
            self.seen = None

        def index(self, request):
            self.seen = request
            return self

    controller = Controller()
    invoker = create_invoker(request="GET /")

    result = invoker.call(controller, "index")

    assert_that(result).matches(is_same_instance_as(controller))
    assert_that(controller.seen).matches("GET /")


def test_manifest_replaces_signature_introspection():
    @injects("db", "config")
    def make(connection, settings):
        return connection, settings

    invoker = create_invoker(db="connection", config="settings")

    assert_that(invoker.call(make)).matches(("connection", "settings"))


def test_factory_service_is_resolved_through_injection():
    registry = ServiceRegistry()
    registry.register("host", "localhost")
    registry.register("url", Factory(lambda host: f"http://{host}"))
    invoker = Invoker(ArgumentResolver(registry))

    assert_that(invoker.call(lambda url: url)).matches("http://localhost")


def test_missing_service_chain_reports_each_resolution_layer():
    registry = ServiceRegistry()
    registry.register("db", Factory(lambda dsn: dsn))
    invoker = Invoker(ArgumentResolver(registry))

    def handler(db):
        return db

    with pytest.raises(MissingServiceError) as exc_info:
        invoker.call(handler)

    assert_that(exc_info.value.name).matches("dsn")
    assert_that([c.parameter for c in exc_info.value.chain]).matches(["dsn", "db"])
    assert "Resolution chain" in str(exc_info.value)


@pytest.mark.parametrize(
    "target, method",
    [
        (None, None),
        (42, None),
        ("text", "missing_method"),
        (object(), "missing_method"),
        (len, "upper"),
    ],
)
def test_invalid_call_targets(target, method):
    with raises_exception(InvalidCallTargetError):
        create_invoker().call(target, method)


def test_non_callable_attribute_is_invalid_target():
    class Thing:
        name = "thing"

    with raises_exception(InvalidCallTargetError):
        create_invoker().call(Thing(), "name")


def test_errors_raised_in_target_are_wrapped_in_call_error():
    class Controller:
        def index(self):
            raise KeyError("boom")

    controller = Controller()

    with pytest.raises(CallError) as exc_info:
        create_invoker().call(controller, "index")

    error = exc_info.value
    assert_that(error.root_cause).matches(is_exact_type(KeyError))
    assert_that(error.__cause__).matches(is_same_instance_as(error.root_cause))
    assert_that(error.context).matches(is_same_instance_as(controller))
    assert_that(error.method).matches("index")
    assert "Controller.index()" in str(error)


def test_nested_call_errors_unwrap_to_root_cause():
    registry = ServiceRegistry()
    invoker = Invoker(ArgumentResolver(registry))
    root = ValueError("root")

    def inner():
        raise root

    def middle():
        invoker.call(inner)

    def outer():
        invoker.call(middle)

    with pytest.raises(CallError) as exc_info:
        invoker.call(outer)

    layers = list(exc_info.value)
    assert_that(layers).matches(has_length(3))
    assert_that([layer.context for layer in layers]).matches([outer, middle, inner])
    assert_that(exc_info.value.root_cause).matches(is_same_instance_as(root))


def test_resolution_errors_are_not_wrapped():
    def fn(missing):
        return missing

    with raises_exception(MissingServiceError):
        create_invoker().call(fn)


def test_argument_resolution_completes_before_the_call():
    calls = []

    def target(a, b):
        calls.append("target")

    registry = ServiceRegistry()
    registry.register("a", Factory(lambda: calls.append("a")))
    invoker = Invoker(ArgumentResolver(registry))

    with raises_exception(MissingServiceError):
        invoker.call(target)

    assert_that(calls).matches(["a"])
