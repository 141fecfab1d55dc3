from itertools import count
from unittest.mock import Mock

from assertive import assert_that, is_same_instance_as, was_called

from cradle_ioc import Lifetime, as_class, as_function, create_container


def make_counter():
    numbers = count(1)

    def next_number(cradle):
        return next(numbers)

    return next_number


def test_transient_registration_invokes_its_producer_on_every_resolve():
    container = create_container()
    container.register("number", as_function(make_counter()))

    numbers = [container.resolve("number") for _ in range(3)]

    assert_that(numbers).matches([1, 2, 3])


def test_transient_is_the_default_lifetime():
    container = create_container()
    resolver = as_function(make_counter())
    container.register("number", resolver)

    assert_that(resolver.lifetime).matches(Lifetime.TRANSIENT)
    assert_that(container.resolve("number")).matches(1)
    assert_that(container.resolve("number")).matches(2)


def test_singleton_is_created_once_whichever_scope_resolves_it():
    spy = Mock()

    class Database:
        def __init__(self, cradle):
            spy()

    container = create_container()
    container.register("db", as_class(Database).singleton())
    scope_a = container.create_scope()
    scope_b = container.create_scope()
    nested = scope_a.create_scope()

    db = scope_a.resolve("db")

    assert_that(scope_b.resolve("db")).matches(is_same_instance_as(db))
    assert_that(nested.resolve("db")).matches(is_same_instance_as(db))
    assert_that(container.resolve("db")).matches(is_same_instance_as(db))
    assert_that(spy).matches(was_called().once())


def test_singleton_resolved_from_a_scope_is_cached_on_the_root():
    container = create_container()
    container.register("number", as_function(make_counter()).singleton())
    scope = container.create_scope()

    scope.resolve("number")

    assert_that(list(container.cache)).matches(["number"])
    assert_that(list(scope.cache)).matches([])


def test_scoped_registration_is_cached_per_scope():
    container = create_container()
    container.register("number", as_function(make_counter()).scoped())
    scope_a = container.create_scope()
    scope_b = container.create_scope()

    assert_that(scope_a.resolve("number")).matches(1)
    assert_that(scope_a.resolve("number")).matches(1)
    assert_that(scope_b.resolve("number")).matches(2)
    assert_that(scope_b.resolve("number")).matches(2)


def test_scoped_value_of_a_parent_is_not_shared_with_a_later_child():
    container = create_container()
    container.register("number", as_function(make_counter()).scoped())

    from_root = container.resolve("number")
    child = container.create_scope()

    assert_that(from_root).matches(1)
    assert_that(child.resolve("number")).matches(2)
    assert_that(container.resolve("number")).matches(1)


def test_scoped_registration_of_an_ancestor_is_cached_on_the_resolving_descendant():
    container = create_container()
    container.register("number", as_function(make_counter()).scoped())
    child = container.create_scope()
    grandchild = child.create_scope()

    grandchild.resolve("number")

    assert_that(list(grandchild.cache)).matches(["number"])
    assert_that(list(child.cache)).matches([])
    assert_that(list(container.cache)).matches([])


def test_transient_values_are_never_cached():
    container = create_container()
    container.register("number", as_function(make_counter()))

    container.resolve("number")

    assert_that(len(container.cache)).matches(0)


def test_scoped_dependencies_are_shared_within_a_scope():
    class Connection:
        def __init__(self, cradle):
            pass

    class Repository:
        def __init__(self, cradle):
            self.connection = cradle.connection

    container = create_container()
    container.register(
        {
            "connection": as_class(Connection).scoped(),
            "users": as_class(Repository),
            "orders": as_class(Repository),
        }
    )
    scope = container.create_scope()
    other_scope = container.create_scope()

    users = scope.resolve("users")
    orders = scope.resolve("orders")

    assert_that(orders.connection).matches(is_same_instance_as(users.connection))
    assert other_scope.resolve("users").connection is not users.connection


def test_lifetime_can_be_given_as_an_option():
    container = create_container()
    container.register("number", as_function(make_counter(), lifetime=Lifetime.SINGLETON))

    assert_that(container.resolve("number")).matches(1)
    assert_that(container.resolve("number")).matches(1)


def test_lifetime_can_be_changed_fluently_after_construction():
    resolver = as_function(make_counter()).singleton().scoped().transient()

    assert_that(resolver.lifetime).matches(Lifetime.TRANSIENT)
