import textwrap

import pytest
from assertive import assert_that, has_length, is_exact_type, is_none, is_same_instance_as

from cradle_ioc import (
    ClassResolver,
    FunctionResolver,
    InjectionMode,
    Lifetime,
    LoadModulesResult,
    as_function,
    create_container,
    list_modules,
    load_modules,
)
from cradle_ioc.loading import import_module_from_path


def write_module(directory, relative_path, source):
    path = directory / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source))
    return path


@pytest.fixture
def services(tmp_path):
    write_module(
        tmp_path,
        "services/user_service.py",
        """
        class UserService:
            def __init__(self, cradle):
                self.repository = cradle.user_repository
        """,
    )
    write_module(
        tmp_path,
        "services/user_repository.py",
        """
        def user_repository(cradle):
            return "users"
        """,
    )
    write_module(tmp_path, "services/__init__.py", "")
    write_module(tmp_path, "services/README.txt", "not a module")
    return tmp_path


def test_list_modules_finds_python_files_and_skips_dunder_modules(services):
    modules = list_modules("services/*.py", cwd=services)

    assert_that([m.name for m in modules]).matches(["user_repository", "user_service"])
    assert_that(modules[0].path).matches((services / "services" / "user_repository.py").resolve())
    assert_that(modules[0].options).matches(is_none())


def test_list_modules_searches_recursively(tmp_path):
    write_module(tmp_path, "top.py", "")
    write_module(tmp_path, "nested/deeper/inner.py", "")

    modules = list_modules("**/*.py", cwd=tmp_path)

    assert_that(sorted(m.name for m in modules)).matches(["inner", "top"])


def test_list_modules_attaches_pattern_options(services):
    modules = list_modules(("services/*.py", Lifetime.SINGLETON), cwd=services)

    assert_that(modules).matches(has_length(2))
    assert_that([m.options for m in modules]).matches([Lifetime.SINGLETON, Lifetime.SINGLETON])


def test_list_modules_lists_a_module_once_with_the_last_matching_options(services):
    modules = list_modules(
        ["services/*.py", ("services/user_service.py", {"lifetime": Lifetime.SCOPED})],
        cwd=services,
    )

    assert_that([(m.name, m.options) for m in modules]).matches(
        [("user_repository", None), ("user_service", {"lifetime": Lifetime.SCOPED})]
    )


def test_list_modules_returns_nothing_when_nothing_matches(tmp_path):
    assert_that(list_modules("missing/*.py", cwd=tmp_path)).matches([])


def test_load_modules_registers_default_exports_under_the_module_name(services):
    container = create_container()

    result = load_modules(container, "services/*.py", cwd=services)

    assert_that(result).matches(is_exact_type(LoadModulesResult))
    assert_that([m.name for m in result.loaded_modules]).matches(["user_repository", "user_service"])
    assert_that(container.get_registration("user_service")).matches(is_exact_type(ClassResolver))
    assert_that(container.get_registration("user_repository")).matches(is_exact_type(FunctionResolver))
    assert_that(container.resolve("user_service").repository).matches("users")


def test_loaded_registrations_are_transient_by_default(services):
    container = create_container()

    load_modules(container, "services/*.py", cwd=services)

    assert_that(container.get_registration("user_service").lifetime).matches(Lifetime.TRANSIENT)
    assert container.resolve("user_service") is not container.resolve("user_service")


def test_load_modules_formats_names(services):
    def camel_case(name, descriptor):
        first, *rest = name.split("_")
        return first + "".join(part.title() for part in rest)

    container = create_container()

    load_modules(container, "services/*.py", cwd=services, format_name=camel_case)

    assert_that(container.has_registration("userService")).matches(True)
    assert_that(container.has_registration("userRepository")).matches(True)
    assert_that(container.has_registration("user_service")).matches(False)


def test_load_modules_applies_options_in_order(services):
    container = create_container()

    load_modules(
        container,
        [("services/user_service.py", {"lifetime": Lifetime.SCOPED}), "services/user_repository.py"],
        cwd=services,
        resolver_options={"lifetime": Lifetime.SINGLETON},
    )

    assert_that(container.get_registration("user_service").lifetime).matches(Lifetime.SCOPED)
    assert_that(container.get_registration("user_repository").lifetime).matches(Lifetime.SINGLETON)


def test_load_modules_uses_a_custom_register_function(services):
    container = create_container()

    load_modules(container, "services/user_repository.py", cwd=services, resolver_options={"register": as_function})

    assert_that(container.get_registration("user_repository")).matches(is_exact_type(FunctionResolver))
    assert_that(container.resolve("user_repository")).matches("users")


def test_load_modules_registers_members_with_inline_options(tmp_path):
    write_module(
        tmp_path,
        "database.py",
        """
        from cradle_ioc import Lifetime, resolver_options


        @resolver_options(name="db", lifetime=Lifetime.SINGLETON)
        def make_database(cradle):
            return object()


        @resolver_options(lifetime=Lifetime.SCOPED)
        class Session:
            def __init__(self, cradle):
                self.db = cradle.db
        """,
    )
    container = create_container()

    load_modules(container, "*.py", cwd=tmp_path)

    assert_that(container.get_registration("db").lifetime).matches(Lifetime.SINGLETON)
    assert_that(container.get_registration("Session").lifetime).matches(Lifetime.SCOPED)
    assert_that(container.resolve("Session").db).matches(is_same_instance_as(container.resolve("db")))


def test_inline_options_win_over_pattern_options(tmp_path):
    write_module(
        tmp_path,
        "cache.py",
        """
        from cradle_ioc import Lifetime, resolver_options


        @resolver_options(lifetime=Lifetime.SINGLETON)
        def cache(cradle):
            return {}
        """,
    )
    container = create_container()

    load_modules(container, ("*.py", {"lifetime": Lifetime.SCOPED}), cwd=tmp_path)

    assert_that(container.get_registration("cache").lifetime).matches(Lifetime.SINGLETON)


def test_load_modules_ignores_private_imported_and_unexported_members(tmp_path):
    write_module(
        tmp_path,
        "helpers.py",
        """
        from collections import OrderedDict as Helpers


        def _helpers(cradle):
            return "private"


        def other(cradle):
            return "not exported"


        HELPERS = "not callable"
        """,
    )
    container = create_container()

    load_modules(container, "*.py", cwd=tmp_path)

    assert_that(container.registrations).matches({})


def test_loaded_classes_support_classic_injection(tmp_path):
    write_module(
        tmp_path,
        "greeter.py",
        """
        class Greeter:
            def __init__(self, greeting, punctuation="!"):
                self.message = greeting + punctuation
        """,
    )
    container = create_container(injection_mode=InjectionMode.CLASSIC)
    container.register("greeting", as_function(lambda: "hello"))

    load_modules(container, "*.py", cwd=tmp_path)

    assert_that(container.resolve("greeter").message).matches("hello!")


def test_container_load_modules_returns_the_container(services):
    container = create_container()

    result = container.load_modules("services/*.py", cwd=services)

    assert_that(result).matches(is_same_instance_as(container))
    assert_that(container.has_registration("user_service")).matches(True)


def test_container_load_modules_uses_the_configured_import_hook(services):
    imported = []

    def import_module(path):
        imported.append(path.name)
        return import_module_from_path(path) if path.name == "user_repository.py" else None

    container = create_container(import_module=import_module)

    container.load_modules("services/*.py", cwd=services)

    assert_that(imported).matches(["user_repository.py", "user_service.py"])
    assert_that(container.has_registration("user_repository")).matches(True)
    assert_that(container.has_registration("user_service")).matches(False)


def test_import_module_from_path_reuses_an_imported_module(services):
    path = services / "services" / "user_service.py"

    first = import_module_from_path(path)
    second = import_module_from_path(path)

    assert_that(second).matches(is_same_instance_as(first))
    assert_that(first.UserService.__module__).matches(first.__name__)


def test_import_errors_propagate(tmp_path):
    write_module(tmp_path, "broken.py", "raise RuntimeError('broken module')\n")
    container = create_container()

    with pytest.raises(RuntimeError, match="broken module"):
        load_modules(container, "*.py", cwd=tmp_path)
