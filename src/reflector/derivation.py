"""Whole-program derivation: synthesized accessors, flag methods, proxies and checks.

Derivation runs once, after every file has been parsed, because it resolves
names (flag enums, base classes) across the whole declaration graph. Each class
is handled independently and only mutates its own members.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

import structlog

from .attributes import catalog
from .context import ReflectionContext
from .errors import CrossReferenceError, ReflectorError
from .models.declarations import (
    AccessMode,
    Class,
    ClassDeclaredFlag,
    ClassFlags,
    Declaration,
    EntityFlags,
    EnumFlags,
    Enumeration,
    Enumerator,
    Field,
    FieldFlags,
    Method,
    MethodFlags,
    Property,
    PropertyFlags,
    compute_uid,
)

logger = structlog.get_logger()

FLAG_GETTER_FLAGS = (
    MethodFlags.CONST | MethodFlags.INLINE | MethodFlags.NOEXCEPT | MethodFlags.NO_DISCARD | MethodFlags.FOR_FLAG
)
FLAG_SETTER_FLAGS = MethodFlags.INLINE | MethodFlags.FOR_FLAG


class DerivationEngine:
    def __init__(self, context: ReflectionContext) -> None:
        self.context = context
        self.settings = context.settings
        self.names = context.settings.names
        self.attributes = context.attributes
        self.graph = context.graph

    # --- public API ---
    def run(self) -> List[ReflectorError]:
        """Derive every class and enum in the graph; return all errors raised."""
        classes = list(self.graph.classes())
        errors: List[ReflectorError] = []
        with ThreadPoolExecutor(max_workers=self.settings.workers) as pool:
            for error in pool.map(self._derive_class_safely, classes):
                if error is not None:
                    errors.append(error)
        for henum in self.graph.enums():
            try:
                self.derive_enum(henum)
            except ReflectorError as exc:
                errors.append(exc.at(henum.source_path, henum.declaration_line))
        logger.info(
            "derivation_finished",
            classes=len(classes),
            errors=len(errors),
            warnings=len(self.context.warnings),
        )
        return errors

    def derive_class(self, klass: Class) -> None:
        self._derive_common(klass)

        should_build_proxy = any(
            MethodFlags.VIRTUAL in method.flags and MethodFlags.FINAL not in method.flags
            for method in klass.methods
        )
        create_proxy = self.attributes.lookup(catalog.CREATE_PROXY, klass)
        if should_build_proxy and not create_proxy:
            klass.add_doc_note(
                "No Proxy",
                "Even though this class has virtual methods, no proxy class will be created for it, which means "
                "creating runtime subclasses for it will be limited or impossible.",
            )
        if should_build_proxy and create_proxy:
            klass.flags |= ClassFlags.HAS_PROXY

        artificial: List[Method] = []
        if self.attributes.lookup(catalog.SINGLETON, klass):
            getter = self._make_artificial_method(
                klass,
                klass,
                "SingletonGetter",
                f"{klass.full_type()}&",
                self.names.singleton_instance_getter_name,
                "",
                "static self_type instance; return instance;",
                ["Returns the single instance of this class"],
                MethodFlags.NOEXCEPT | MethodFlags.STATIC | MethodFlags.NO_DISCARD,
            )
            artificial.append(getter)
            klass.add_doc_note("Singleton", f"This class is a singleton. Call {getter.name} to get the instance.")

        is_abstract = self.attributes.lookup(catalog.ABSTRACT, klass)
        if is_abstract:
            klass.add_doc_note("Abstract", "This class is not constructible via the reflection system.")

        for method in list(klass.methods):
            artificial.extend(self._derive_method(klass, method))
        for item in klass.fields:
            artificial.extend(self._derive_field(klass, item))
        for prop in klass.properties.values():
            self._derive_property(prop)

        klass.methods.extend(artificial)
        self._check_method_names(klass)

        if not is_abstract:
            for method in klass.methods:
                if MethodFlags.ABSTRACT in method.flags:
                    raise CrossReferenceError(
                        f"Abstract method '{method.name}' in non-abstract class '{klass.full_type()}'",
                        path=klass.source_path,
                        line=method.actual_declaration_line,
                    )

        self._materialize_properties(klass)

    def derive_enum(self, henum: Enumeration) -> None:
        self._derive_common(henum)
        if EnumFlags.LIST in henum.flags:
            henum.add_doc_note(
                "List Enum",
                "This enum represents a list of some sort, and its values will therefore be "
                "incrementable/decrementable (with wraparound behavior).",
            )
        for enumerator in henum.enumerators:
            self._derive_common(enumerator)
            if enumerator.opposite:
                enumerator.add_doc_note("Opposite", f"The complement of this flag value is named `{enumerator.opposite}`.")

    # --- per-declaration ---
    def _derive_class_safely(self, klass: Class) -> Optional[ReflectorError]:
        try:
            self.derive_class(klass)
        except ReflectorError as exc:
            return exc.at(klass.source_path, klass.declaration_line)
        return None

    def _derive_common(self, decl: Declaration) -> None:
        deprecated = self.attributes.lookup(catalog.DEPRECATED, decl)
        if deprecated is not False and deprecated is not None:
            decl.entity_flags |= EntityFlags.DEPRECATED
            decl.deprecation = deprecated if isinstance(deprecated, str) else None
        if self.attributes.lookup(catalog.UNIMPLEMENTED, decl):
            decl.entity_flags |= EntityFlags.UNIMPLEMENTED

        document_members = self.attributes.lookup(catalog.DOCUMENT_MEMBERS, decl, None)
        if document_members is not None:
            decl.document_members = document_members
        document = self.attributes.lookup(catalog.DOCUMENT, decl, None)
        if document is not None:
            decl.force_document = document

        kind = decl.kind.value.lower()
        no_discard = self.attributes.lookup(catalog.NO_DISCARD, decl, None)
        if no_discard not in (None, False):
            reason = no_discard if isinstance(no_discard, str) else ""
            decl.add_doc_note("No Discard", f"The result of this {kind} should not be discarded. {reason}".strip())

        if EntityFlags.DEPRECATED in decl.entity_flags:
            decl.add_warning_doc_note(
                "Deprecated", decl.deprecation or f"This {kind} is deprecated; no reason was given"
            )
        if EntityFlags.UNIMPLEMENTED in decl.entity_flags:
            note = decl.add_warning_doc_note("Unimplemented", f"This {kind}'s functionality is unimplemented")
            note.icon = "circle-slash"

    def _derive_method(self, klass: Class, method: Method) -> List[Method]:
        self._derive_common(method)
        result: List[Method] = []
        if (
            ClassFlags.HAS_PROXY in klass.flags
            and MethodFlags.VIRTUAL in method.flags
            and MethodFlags.FINAL not in method.flags
        ):
            flags = (method.flags & ~(MethodFlags.VIRTUAL | MethodFlags.ABSTRACT)) | MethodFlags.PROXY
            if MethodFlags.ABSTRACT in method.flags:
                body = f'throw std::runtime_error{{"invalid abstract call to function {klass.full_type()}::{method.name}"}};'
            else:
                names = ", ".join(param.name for param in method.parameters)
                body = f"return self_type::{method.name}({names});"
            proxy = self._make_artificial_method(
                klass,
                method,
                "Proxy",
                method.return_type,
                self.names.proxy_method_prefix + method.name,
                method.raw_parameters,
                body,
                [f"Proxy function for {method.name}"],
                flags,
            )
            proxy.force_document = False
            result.append(proxy)

        if MethodFlags.NO_RETURN in method.flags:
            method.add_doc_note("Does Not Return", "This function does not return.")
        if MethodFlags.NO_SCRIPT in method.flags:
            method.add_doc_note("Not Scriptable", "This method is not accessible via script.")
        return result

    def _derive_field(self, klass: Class, item: Field) -> List[Method]:
        self._derive_common(item)
        registry = self.attributes
        result: List[Method] = []

        if item.access is AccessMode.PUBLIC or item.access is AccessMode.UNSPECIFIED:
            described = f"the value of the {item.display_name} field of this object"
        else:
            described = f"the value of the `{item.display_name}` private field of this object"

        prop = None
        if (
            (FieldFlags.DECLARED_PRIVATE in item.flags or self.settings.generate_properties_for_public_fields)
            and not (FieldFlags.NO_GETTER in item.flags and FieldFlags.NO_SETTER in item.flags)
            and registry.lookup(catalog.PROPERTY, item, True) is not False
        ):
            prop = klass.ensure_property(item.clean_name)
            prop.source_field = item
            if not prop.type:
                prop.type = item.type

        # static accessors have no `this`
        member = item.name if FieldFlags.STATIC in item.flags else f"this->{item.name}"

        if FieldFlags.NO_GETTER not in item.flags:
            flags = MethodFlags.NOEXCEPT | MethodFlags.NO_DISCARD
            flags |= MethodFlags.STATIC if FieldFlags.STATIC in item.flags else MethodFlags.CONST
            if FieldFlags.NO_SCRIPT in item.flags:
                flags |= MethodFlags.NO_SCRIPT
            getter = self._make_artificial_method(
                klass,
                item,
                "Getter",
                f"{item.type} const&",
                self.names.getter_prefix + item.clean_name,
                "",
                f"return {member};",
                [f"Gets {described}"],
                flags,
            )
            item.add_doc_note("Getter", f"The value of this field is retrieved by the {getter.name} method.")
            result.append(getter)
            if prop is not None:
                if prop.getter is not None:
                    raise CrossReferenceError(
                        f"Getter for property '{prop.name}' already declared at line {prop.getter.declaration_line}",
                        path=item.source_path,
                        line=item.declaration_line,
                    )
                prop.getter = getter

        on_change = registry.lookup(catalog.ON_CHANGE, item, "")
        if FieldFlags.NO_SETTER not in item.flags:
            flags = MethodFlags.STATIC if FieldFlags.STATIC in item.flags else MethodFlags(0)
            if FieldFlags.NO_SCRIPT in item.flags:
                flags |= MethodFlags.NO_SCRIPT
            setter = self._make_artificial_method(
                klass,
                item,
                "Setter",
                "void",
                self.names.setter_prefix + item.clean_name,
                f"{item.type} const& value",
                _with_on_change(f"{member} = value;", on_change),
                [f"Sets {described}"],
                flags,
            )
            item.add_doc_note("Setter", f"The value of this field is set by the {setter.name} method.")
            if on_change:
                item.add_doc_note(
                    "On Change",
                    "When this field is changed (via its setter and other such functions), "
                    f"the following code will be executed: `{on_change}`",
                )
            result.append(setter)
            if prop is not None:
                if prop.setter is not None:
                    raise CrossReferenceError(
                        f"Setter for property '{prop.name}' already declared at line {prop.setter.declaration_line}",
                        path=item.source_path,
                        line=item.declaration_line,
                    )
                prop.setter = setter

        if FieldFlags.NO_UNIQUE_ADDRESS in item.flags:
            item.add_doc_note(
                "No Unique Address",
                "This field has the [[no_unique_address]] attribute applied to it.",
            )
        if FieldFlags.NO_EDIT in item.flags:
            item.add_doc_note("Not Editable", "This field is not editable in the editor.")
        if FieldFlags.NO_SCRIPT in item.flags:
            item.add_doc_note("Not Scriptable", "This field is not accessible via script.")
        if FieldFlags.NO_SAVE in item.flags:
            item.add_doc_note("Not Saved", f"This field will not be serialized when saving {klass.name}.")
        if FieldFlags.NO_LOAD in item.flags:
            item.add_doc_note("Not Loaded", f"This field will not be deserialized when loading {klass.name}.")
        if FieldFlags.REQUIRED in item.flags:
            item.add_doc_note("Required", f"This field is required to be present when deserializing class {klass.name}.")

        result.extend(self._derive_flag_methods(klass, item, on_change))
        return result

    def _derive_flag_methods(self, klass: Class, item: Field, on_change: str) -> List[Method]:
        registry = self.attributes
        flag_getters = registry.lookup(catalog.FLAG_GETTERS, item)
        flag_setters = registry.lookup(catalog.FLAGS, item)
        if flag_getters and flag_setters:
            raise CrossReferenceError(
                "Only one of 'FlagGetters' and 'Flags' can be declared",
                path=item.source_path,
                line=item.declaration_line,
            )
        enum_name = flag_setters or flag_getters
        if not enum_name:
            return []
        henum = self.graph.find_enum(enum_name)
        if henum is None:
            raise CrossReferenceError(
                f"Enum '{enum_name}' not reflected", path=item.source_path, line=item.declaration_line
            )
        with_setters = bool(flag_setters)
        with_nots = with_setters and registry.lookup(catalog.FLAG_NOTS, item)

        item.add_doc_note(
            "Flags",
            f"This is a bitflag field, with bits representing flags in the {henum.name} enum; "
            f"accessor functions were generated in {klass.name} for each flag.",
        )
        klass.additional_body_lines.append(
            f"static_assert(::std::is_integral_v<{item.type}>, "
            f"\"Type '{item.type}' for field '{item.name}' with flag attributes must be integral\");"
        )
        if henum.enumerators:
            bits_needed = max(enumerator.value for enumerator in henum.enumerators) + 1
            klass.additional_body_lines.append(
                f"static_assert(sizeof({item.type})*CHAR_BIT >= {bits_needed}, \"Type '{item.type}' for field "
                f"'{item.name}' is too small to hold all values of its flag type {henum.full_type()}\");"
            )
        if not henum.is_consecutive():
            message = (
                f"The enumerators in the '{henum.full_type()}' enum are not consecutive, "
                "which may cause issues with the generated flag methods."
            )
            item.add_warning_doc_note("Non-Consecutive Flags", message)
            self.context.warn(item, message)

        for enumerator in henum.enumerators:
            if not 0 <= enumerator.value < 64:
                raise CrossReferenceError(
                    f"Enumerator '{enumerator.name}' of flag enum '{henum.full_type()}' has value {enumerator.value}; "
                    "flag values must be bit indices between 0 and 63",
                    path=item.source_path,
                    line=item.declaration_line,
                )
        enum_full_name = henum.full_name()
        result: List[Method] = []
        declared: Dict[str, ClassDeclaredFlag] = {}

        def add(kind: str, enumerator: Enumerator, return_type: str, name: str, body: str, comment: str, flags: MethodFlags) -> None:
            if FieldFlags.NO_SCRIPT in item.flags:
                flags |= MethodFlags.NO_SCRIPT
            method = self._make_artificial_method(
                klass,
                item,
                f"{kind}.{enum_full_name}.{enumerator.name}",
                return_type,
                name,
                "",
                body,
                [comment],
                flags,
            )
            declared[enumerator.name].generated_methods.append(method)
            result.append(method)

        for enumerator in henum.enumerators:
            flag = ClassDeclaredFlag(name=enumerator.name, source_field=item, represents=enumerator)
            declared[enumerator.name] = flag
            klass.declared_flags.append(flag)

            bit = _flag_bit(item, enumerator)
            add(
                "FlagGetter", enumerator, "bool", self.names.is_prefix + enumerator.name,
                f"return (this->{item.name} & {bit}) != 0;",
                f"Checks whether the {enumerator.name} flag is set in {item.name}",
                FLAG_GETTER_FLAGS,
            )
            if enumerator.opposite:
                add(
                    "FlagOppositeGetter", enumerator, "bool", self.names.is_prefix + enumerator.opposite,
                    f"return (this->{item.name} & {bit}) == 0;",
                    f"Checks whether the {enumerator.name} flag is NOT set in {item.name}",
                    FLAG_GETTER_FLAGS,
                )
            elif with_nots:
                add(
                    "FlagOppositeGetter", enumerator, "bool", self.names.is_not_prefix + enumerator.name,
                    f"return (this->{item.name} & {bit}) == 0;",
                    f"Checks whether the {enumerator.name} flag is NOT set in {item.name}",
                    FLAG_GETTER_FLAGS,
                )

        if not with_setters:
            return result

        for enumerator in henum.enumerators:
            bit = _flag_bit(item, enumerator)
            add(
                "FlagSetter", enumerator, "void", self.names.setter_prefix + enumerator.name,
                _with_on_change(f"this->{item.name} |= {bit};", on_change),
                f"Sets the {enumerator.name} flag in {item.name}",
                FLAG_SETTER_FLAGS,
            )
            if enumerator.opposite:
                add(
                    "FlagOppositeSetter", enumerator, "void", self.names.setter_prefix + enumerator.opposite,
                    _with_on_change(f"this->{item.name} &= ~{bit};", on_change),
                    f"Clears the {enumerator.name} flag in {item.name}",
                    FLAG_SETTER_FLAGS,
                )
            elif with_nots:
                add(
                    "FlagOppositeSetter", enumerator, "void", self.names.set_not_prefix + enumerator.name,
                    _with_on_change(f"this->{item.name} &= ~{bit};", on_change),
                    f"Clears the {enumerator.name} flag in {item.name}",
                    FLAG_SETTER_FLAGS,
                )
        for enumerator in henum.enumerators:
            bit = _flag_bit(item, enumerator)
            add(
                "FlagUnsetter", enumerator, "void", self.names.unset_prefix + enumerator.name,
                _with_on_change(f"this->{item.name} &= ~{bit};", on_change),
                f"Clears the {enumerator.name} flag in {item.name}",
                FLAG_SETTER_FLAGS,
            )
            if enumerator.opposite:
                add(
                    "FlagOppositeUnsetter", enumerator, "void", self.names.unset_prefix + enumerator.opposite,
                    _with_on_change(f"this->{item.name} |= {bit};", on_change),
                    f"Sets the {enumerator.name} flag in {item.name}",
                    FLAG_SETTER_FLAGS,
                )
        for enumerator in henum.enumerators:
            bit = _flag_bit(item, enumerator)
            add(
                "FlagToggler", enumerator, "void", self.names.toggle_prefix + enumerator.name,
                _with_on_change(f"this->{item.name} ^= {bit};", on_change),
                f"Toggles the {enumerator.name} flag in {item.name}",
                FLAG_SETTER_FLAGS,
            )
            if enumerator.opposite:
                add(
                    "FlagOppositeToggler", enumerator, "void", self.names.toggle_prefix + enumerator.opposite,
                    _with_on_change(f"this->{item.name} ^= {bit};", on_change),
                    f"Toggles the {enumerator.name} flag in {item.name}",
                    FLAG_SETTER_FLAGS,
                )
        return result

    def _derive_property(self, prop: Property) -> None:
        source = prop.source_field
        if source is not None:
            prop.flags |= PropertyFlags.FROM_FIELD
            if FieldFlags.NO_EDIT in source.flags:
                prop.flags |= PropertyFlags.NO_EDIT
            if FieldFlags.NO_SCRIPT in source.flags:
                prop.flags |= PropertyFlags.NO_SCRIPT

    # --- artificial methods ---
    def _make_artificial_method(
        self,
        klass: Class,
        source: Declaration,
        function_kind: str,
        return_type: str,
        name: str,
        parameters: str,
        body: str,
        comments: List[str],
        flags: MethodFlags,
    ) -> Method:
        method = Method(
            name=name,
            display_name=name,
            parent=klass,
            file=klass.file,
            return_type=return_type,
            flags=flags | MethodFlags.ARTIFICIAL,
            access=AccessMode.PUBLIC,
            comments=list(comments),
            source_declaration=source,
            artificial_body=body,
        )
        method.set_parameters(parameters)
        if body:
            method.flags |= MethodFlags.HAS_BODY
        existing = source.associated_artificial_methods.get(function_kind)
        if existing is not None:
            raise CrossReferenceError(
                f"Artificial method '{function_kind}' already exists in class {klass.name}: {existing.name}",
                path=source.source_path,
                line=source.declaration_line,
            )
        source.associated_artificial_methods[function_kind] = method
        method.uid = compute_uid(klass.source_path or "", method.actual_declaration_line, function_kind, name)
        return method

    # --- checks ---
    def _check_method_names(self, klass: Class) -> None:
        by_name: Dict[str, List[Method]] = {}
        for method in klass.methods:
            by_name.setdefault(method.name, []).append(method)
            if method.unique_name and method.unique_name != method.name:
                by_name.setdefault(method.unique_name, []).append(method)
                method.add_doc_note("Unique Name", f"This method's unique name will be `{method.unique_name}` in scripts.")
        klass.methods_by_name = by_name

        for method in klass.methods:
            if not method.unique_name:
                continue
            group = by_name[method.unique_name]
            if len(group) > 1:
                notes = [
                    f"{klass.source_path}({other.actual_declaration_line},1):   conflicts with this declaration"
                    for other in group
                    if other is not method
                ]
                raise CrossReferenceError(
                    "Method with unique name not unique",
                    path=klass.source_path,
                    line=method.declaration_line,
                    notes=notes,
                )

        dispatch: Dict[str, List[Method]] = {}
        for method in klass.methods:
            dispatch.setdefault(method.dispatch_name, []).append(method)
        for name, group in dispatch.items():
            if len(group) < 2:
                continue
            for method in group:
                if method.has_default_arguments:
                    raise CrossReferenceError(
                        f"Method '{name}' is overloaded and has default arguments; overloaded methods cannot "
                        "have default arguments (give each overload a UniqueName)",
                        path=klass.source_path,
                        line=method.actual_declaration_line,
                    )

    def _materialize_properties(self, klass: Class) -> None:
        for prop in klass.properties.values():
            prop.access = AccessMode.PUBLIC
            if prop.type:
                continue
            if prop.getter is not None:
                prop.type = prop.getter.return_type
            elif prop.setter is not None and prop.setter.parameters:
                prop.type = prop.setter.parameters[0].type


def _flag_bit(item: Field, enumerator: Enumerator) -> str:
    return f"{item.type}{{{1 << enumerator.value}}}"


def _with_on_change(statement: str, on_change: str) -> str:
    if not on_change:
        return statement
    on_change = on_change.strip()
    if not on_change.endswith(";"):
        on_change += ";"
    return f"{statement} {on_change}"
