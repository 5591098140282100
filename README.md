# xcspchr

`xcspchr` reads a constraint satisfaction instance in the XCSP3 format. It
writes a CHR++ program that models the instance. The program contains integer
variables with interval domains, the propagation rules that the constraints
need, and a labelling phase.

## What is translated

Variables:

- `<var>` elements with an interval domain (`1..9`), or with an `as` alias of
  an earlier variable
- `<array>` elements with a `size` such as `[9][9]`, and an optional
  `<domain for="...">` per cell or for `others`

A variable whose domain is not a single interval, such as `1 3 5`, gets a
message. It is recorded in `CHRCallbacks.unsupported` and is not declared.

Constraints:

- `intension`: the comparisons `lt`, `le`, `gt`, `ge`, `eq` and `neq` over
  expressions built from `add`, `sub`, `mul` and `div`. Each constant and each
  intermediate result becomes an auxiliary variable with a computed interval.
  Propagation rules are emitted for `eq`, `neq`, `lt`, `le`, `gt`, `ge`, `add`
  (`plus`) and `div`. No rule is emitted for `sub` or `mul`.
- `allDifferent` over a plain list of variables. It is posted as pairwise
  disequalities.
- `instantiation`: fixes variables to the values given.
- `sum` with the condition `(eq,k)`. It is posted as a chain of additions.
  Coefficients are read, but they do not appear in the posted call. A sum with
  any other operator produces no call.
- `group` elements (templates with `%i` and `%...` arguments) and `block`
  elements that contain any of the above.

Some forms of `allDifferent` are reported as not handled and are recorded in
`CHRCallbacks.unsupported`:

- over expressions
- with `<except>`
- with several lists
- with a matrix

Any other constraint element stops the conversion with an error.

## Installation

```
pip install .
```

## Command line

```
xcspchr [options] <instance.xml>
```

Options:

- `-b`: write a complete C++ program instead of the CHR block alone. The
  program has a header, helper functions, the CHR block and `main`.
- `-m`: set minimal mode. This sets the flag only and does not change the
  output.
- `-s r1,r2,...`: translate only the listed kinds of constraint. The kinds are
  `intension`, `alldiff`, `instantiation` and `linear`. Names are lower-cased
  and spaces are removed. Do not put the list in brackets.
- `-f`: write the result to `out/<instance>.chrpp` instead of standard output.
  The `out` directory must already exist.
- `-help`: print the usage text.

Any other argument is taken as the instance file. When several are given, the
last one wins.

Progress messages are printed to standard output together with the generated
code. On success the exit status is 0. On a usage error, or when the instance
cannot be read or translated, an error message goes to standard error and the
exit status is 1.

Example:

```
xcspchr -b -s linear,alldiff instance.xml
```

## From Python

`xcspchr.parser.convert` does the same work as the command. It returns the
`CHRCallbacks` object it used:

```python
from xcspchr.parser import convert

callbacks = convert("instance.xml", ["alldiff", "linear"], use_builder=True)
print(callbacks.unsupported)
```

To capture the output, drive the callbacks yourself:

```python
import io

from xcspchr.builder import CHRStructBuilder
from xcspchr.callbacks import CHRCallbacks
from xcspchr.parser import instance_name, parse_instance

name = instance_name("queens.xml")          # "queens"
out = io.StringIO()
builder = CHRStructBuilder(name)
builder.enable_builder()                    # whole program, not only the CHR block
parse_instance("queens.xml", CHRCallbacks(builder, out, name))
print(out.getvalue())
```

The `intension`, `alldiff` and `linear` constraints need a `CHRStructBuilder`.

Expressions can also be parsed on their own:

```python
from xcspchr.model import parse_expression

tree = parse_expression("lt(x,add(y,3))")
```

## Limitations

- The package only generates code. It does not solve the instance, and it
  does not compile or run the generated program. The generated program
  includes `chrpp.hh`, `bt_interval.hh` and `solvint.cpp`. None of these is
  part of this package.
- The supporting rules for `alldiff`, `instantiation` and `linear` are added
  only once per Python process. When several instances are converted in the
  same process, the rules appear only in the first output.

## Testing

```
pip install .[test]
pytest
```