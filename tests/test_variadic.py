import unittest

from wirebox import Container


class TestVariadicConstructorInjection(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_resolve_ignores_inherited_variadic_args_and_kwargs(self):
        class Base:
            def __init__(self, value: int = 7, *args, **kwargs):
                self.value = value
                self.args = args
                self.kwargs = kwargs

        class Derived(Base):
            ...
            # No explicit __init__; inherits Base.__init__ with *args/**kwargs

        self.cont.register(Base, Derived)

        child = self.cont.resolve(Base)
        assert isinstance(child, Derived)
        assert child.value == 7
        assert child.args == ()
        assert child.kwargs == {}

    def test_resolve_injects_keyword_only_parameters_after_variadic_args(self):
        class Dep: ...

        class WithVarArgs:
            def __init__(self, *args, dep: Dep, **kwargs):
                self.args = args
                self.dep = dep
                self.kwargs = kwargs

        self.cont.register(Dep, Dep)
        self.cont.register(WithVarArgs, WithVarArgs)

        obj = self.cont.resolve(WithVarArgs)
        assert obj.args == ()
        assert isinstance(obj.dep, Dep)
        assert obj.kwargs == {}
