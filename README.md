# bytelox

A small interpreter for the Lox scripting language. Source text is scanned into
tokens, compiled in a single pass into bytecode, and run on a stack-based
virtual machine.

The language handled so far covers:

- numbers, strings, `true`, `false` and `nil`
- arithmetic (`+ - * /`), comparison (`< <= > >=`), equality (`== !=`) and `!`
- string concatenation with `+` (strings are interned, so equal strings are
  the same object)
- `print` statements and expression statements
- global variables declared with `var`, and assignment to them
- `{ ... }` blocks, inside which `var` declares a block-scoped name

## Installation

```
pip install .
```

## Usage

Start an interactive prompt:

```
bytelox
```

Each line typed at the `> ` prompt is compiled and run on its own; global
variables persist from line to line. End the session with end-of-file
(Ctrl-D).

Run a script:

```
bytelox script.lox
```

Given more than one argument, the command prints `Usage: bytelox [path]` to
standard error and exits with status 64.

Exit statuses when running a file:

| Status | Meaning                                        |
|--------|------------------------------------------------|
| 0      | success                                        |
| 65     | compile error                                  |
| 70     | runtime error                                  |
| 74     | the file could not be opened or is not UTF-8   |

## Diagnostic output

By default the interpreter is verbose:

- after a successful compile, a disassembly of the chunk is written under a
  `== code ==` header;
- while running, the value stack and each instruction are traced before it
  executes;
- every constant is echoed on its own line as it is loaded.

Tracing and the disassembly listing can be turned off when the VM is built
from Python (see below); the echo of loaded constants cannot.

## Example

```
var greeting = "hello";
var name = "world";
print greeting + " " + name;
print (1 + 2) * 3 > 8;
```

## Using it from Python

```python
import io
from bytelox.vm import VM, InterpretResult

out = io.StringIO()
vm = VM(out=out, trace=False, print_code=False)
result = vm.interpret("print 1 + 2;")
assert result is InterpretResult.OK
```

`VM(out=None, err=None, *, trace=..., print_code=...)` writes program output
to `out` and error reports to `err`, defaulting to standard output and
standard error. `VM.interpret(source)` returns an `InterpretResult`: `OK`,
`COMPILE_ERROR` or `RUNTIME_ERROR`. `VM.push`, `VM.pop` and the `VM.stack`
snapshot expose the value stack.

Compile errors are reported as `[line N] Error at 'x': message` (or
`Error at end`); runtime errors as the message followed by
`[line N] in script`.

The pieces can also be used separately:

- `bytelox.scanner.Scanner(source)` yields `Token`s, ending with an EOF token.
- `bytelox.compiler.compile_source(source, strings=None, out=None)` returns a
  `Chunk` or raises `CompileError`, whose `errors` list holds every message.
- `bytelox.debug.disassemble_chunk(chunk, name)` returns a text listing;
  `disassemble_instruction(chunk, offset)` returns one line and the next
  offset.
- `bytelox.chunk.Chunk` holds `code`, `lines` and `constants`, with `write`
  and `add_constant`; `OpCode` lists the instructions.
- `bytelox.table.Table` is an open-addressing hash table with tombstone
  deletion; `bytelox.objects.StringPool.intern` interns strings and
  `hash_string` gives their 32-bit FNV-1a hash.
- `bytelox.value` has `format_value`, `values_equal` and `is_falsey`.

## What it does not do

- There are no functions, calls, `if`, `while`, `for`, `and`, `or`, classes
  or `return`: the scanner recognises these keywords, but the compiler does
  not accept them.
- Every variable read or assignment is compiled to the global-variable
  instructions, including names declared inside a block, so block-scoped
  variables cannot be read back reliably.
- A chunk holds at most 256 constants and a block at most 256 local names.

## Development

```
pip install -e ".[test]"
pytest
```