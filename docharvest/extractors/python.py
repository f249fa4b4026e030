"""Documentation extractor for Python modules."""

from __future__ import annotations

import ast
from typing import Any, Dict, Iterable, List, Optional, Union

from ..models import DocRecord, ExtractionContext
from .base import IdSource

_FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

_GETTER_DECORATORS = {
    "property",
    "cached_property",
    "functools.cached_property",
    "abc.abstractproperty",
    "abstractproperty",
}
_STATIC_DECORATORS = {"staticmethod", "classmethod"}


class PythonDocExtractor:
    """Emits records for modules, classes, functions and assigned attributes.

    Only symbols reachable from module scope are documented. Functions and
    classes defined inside function bodies are skipped, but ``self.attr = ...``
    assignments inside methods produce instance ``member`` records. An
    attribute assigned in several methods yields several records with the same
    longname; the duplicate resolver keeps the first.
    """

    def __init__(self, tree: ast.AST, context: ExtractionContext, next_id: IdSource) -> None:
        self.results: List[DocRecord] = []
        self._context = context
        self._next_id = next_id
        self._parents: Dict[int, ast.AST] = {}
        self._file_name = context.relative_path

    def push(self, node: Any, parent: Optional[Any]) -> None:
        if parent is not None:
            self._parents[id(node)] = parent

        if isinstance(node, ast.Module):
            self._push_file(node)
        elif isinstance(node, ast.ClassDef):
            self._push_class(node)
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            self._push_function(node)
        elif isinstance(node, (ast.Assign, ast.AnnAssign)):
            self._push_assignment(node)

    # ------------------------------------------------------------------
    # Node handlers

    def _push_file(self, node: ast.Module) -> None:
        self._emit(
            kind="file",
            name=self._file_name,
            longname=self._file_name,
            static=True,
            payload={"description": ast.get_docstring(node)},
        )

    def _push_class(self, node: ast.ClassDef) -> None:
        longname = self._class_longname(node)
        if longname is None:
            return
        payload: Dict[str, Any] = {
            "description": ast.get_docstring(node),
            "lineNumber": node.lineno,
            "extends": [ast.unparse(base) for base in node.bases],
            "decorators": _decorator_names(node.decorator_list),
            "memberof": self._owner_longname(node),
        }
        if isinstance(self._parent(node), ast.Module):
            payload["importPath"] = self._import_path()
        self._emit(kind="class", name=node.name, longname=longname, static=True, payload=payload)

    def _push_function(self, node: _FunctionNode) -> None:
        parent = self._parent(node)
        decorators = _decorator_names(node.decorator_list)
        payload: Dict[str, Any] = {
            "description": ast.get_docstring(node),
            "lineNumber": node.lineno,
            "params": _param_names(node.args),
            "async": isinstance(node, ast.AsyncFunctionDef),
            "decorators": decorators,
        }
        if node.returns is not None:
            payload["return"] = ast.unparse(node.returns)

        if isinstance(parent, ast.Module):
            payload["importPath"] = self._import_path()
            payload["memberof"] = self._file_name
            self._emit(
                kind="function",
                name=node.name,
                longname=f"{self._file_name}~{node.name}",
                static=True,
                payload=payload,
            )
            return

        if not isinstance(parent, ast.ClassDef):
            return
        owner = self._class_longname(parent)
        if owner is None:
            return

        static = any(name in _STATIC_DECORATORS for name in decorators)
        if any(name.endswith(".deleter") for name in decorators):
            return
        if any(name.endswith(".setter") for name in decorators):
            kind = "setter"
        elif any(name in _GETTER_DECORATORS for name in decorators):
            kind = "getter"
        elif node.name == "__init__":
            kind = "constructor"
        else:
            kind = "method"

        payload["memberof"] = owner
        separator = "." if static else "#"
        self._emit(
            kind=kind,
            name=node.name,
            longname=f"{owner}{separator}{node.name}",
            static=static,
            payload=payload,
        )

    def _push_assignment(self, node: Union[ast.Assign, ast.AnnAssign]) -> None:
        targets = node.targets if isinstance(node, ast.Assign) else [node.target]
        payload: Dict[str, Any] = {"lineNumber": node.lineno}
        if isinstance(node, ast.AnnAssign):
            payload["type"] = ast.unparse(node.annotation)

        parent = self._parent(node)
        if isinstance(parent, ast.Module):
            for name in _target_names(targets):
                self._emit(
                    kind="variable",
                    name=name,
                    longname=f"{self._file_name}~{name}",
                    static=True,
                    payload={**payload, "memberof": self._file_name, "importPath": self._import_path()},
                )
            return

        if isinstance(parent, ast.ClassDef):
            owner = self._class_longname(parent)
            if owner is None:
                return
            # A bare annotation declares an instance attribute, as in dataclass fields.
            static = not _declares_instance_attribute(node)
            separator = "." if static else "#"
            for name in _target_names(targets):
                self._emit(
                    kind="member",
                    name=name,
                    longname=f"{owner}{separator}{name}",
                    static=static,
                    payload={**payload, "memberof": owner},
                )
            return

        method = self._enclosing_method(node)
        if method is None:
            return
        func, owner = method
        receiver = _receiver_name(func)
        if receiver is None:
            return
        for target in _flatten(targets):
            if (
                isinstance(target, ast.Attribute)
                and isinstance(target.value, ast.Name)
                and target.value.id == receiver
            ):
                self._emit(
                    kind="member",
                    name=target.attr,
                    longname=f"{owner}#{target.attr}",
                    static=False,
                    payload={**payload, "memberof": owner},
                )

    # ------------------------------------------------------------------
    # Scope helpers

    def _parent(self, node: ast.AST) -> Optional[ast.AST]:
        return self._parents.get(id(node))

    def _class_longname(self, node: ast.ClassDef) -> Optional[str]:
        parent = self._parent(node)
        if isinstance(parent, ast.Module):
            return f"{self._file_name}~{node.name}"
        if isinstance(parent, ast.ClassDef):
            owner = self._class_longname(parent)
            return f"{owner}.{node.name}" if owner else None
        return None

    def _owner_longname(self, node: ast.ClassDef) -> str:
        parent = self._parent(node)
        if isinstance(parent, ast.ClassDef):
            return self._class_longname(parent) or self._file_name
        return self._file_name

    def _enclosing_method(self, node: ast.AST) -> Optional[tuple[_FunctionNode, str]]:
        current = self._parent(node)
        while current is not None and not isinstance(current, (ast.FunctionDef, ast.AsyncFunctionDef)):
            if isinstance(current, (ast.ClassDef, ast.Module, ast.Lambda)):
                return None
            current = self._parent(current)
        if current is None:
            return None
        owner_node = self._parent(current)
        if not isinstance(owner_node, ast.ClassDef):
            return None
        if "staticmethod" in _decorator_names(current.decorator_list):
            return None
        owner = self._class_longname(owner_node)
        if owner is None:
            return None
        return current, owner

    def _import_path(self) -> str:
        context = self._context
        if not context.package_name:
            return self._file_name
        if context.main_path is not None and context.path == context.main_path:
            return context.package_name
        return f"{context.package_name}/{self._file_name}"

    def _emit(
        self,
        *,
        kind: str,
        name: str,
        longname: str,
        static: bool,
        payload: Dict[str, Any],
    ) -> None:
        self.results.append(
            DocRecord(
                doc_id=self._next_id(),
                kind=kind,
                name=name,
                longname=longname,
                static=static,
                access=_access(name),
                payload=payload,
            )
        )


def _access(name: str) -> str:
    if name.startswith("__") and name.endswith("__"):
        return "public"
    if name.startswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


def _decorator_names(decorators: Iterable[ast.expr]) -> List[str]:
    names: List[str] = []
    for decorator in decorators:
        if isinstance(decorator, ast.Call):
            decorator = decorator.func
        names.append(ast.unparse(decorator))
    return names


def _param_names(args: ast.arguments) -> List[str]:
    names = [arg.arg for arg in args.posonlyargs + args.args]
    if args.vararg:
        names.append("*" + args.vararg.arg)
    names.extend(arg.arg for arg in args.kwonlyargs)
    if args.kwarg:
        names.append("**" + args.kwarg.arg)
    return names


def _receiver_name(func: _FunctionNode) -> Optional[str]:
    positional = func.args.posonlyargs + func.args.args
    return positional[0].arg if positional else None


def _flatten(targets: Iterable[ast.expr]) -> Iterable[ast.expr]:
    for target in targets:
        if isinstance(target, (ast.Tuple, ast.List)):
            yield from _flatten(target.elts)
        elif isinstance(target, ast.Starred):
            yield from _flatten([target.value])
        else:
            yield target


def _target_names(targets: Iterable[ast.expr]) -> List[str]:
    return [target.id for target in _flatten(targets) if isinstance(target, ast.Name)]


def _declares_instance_attribute(node: ast.AST) -> bool:
    if not isinstance(node, ast.AnnAssign) or node.value is not None:
        return False
    return "ClassVar" not in ast.unparse(node.annotation)


__all__ = ["PythonDocExtractor"]
