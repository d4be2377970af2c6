"""
Bounds-checked access to binary data held in memory.

Both the archive and the image decoders parse untrusted buffers through the `BinaryReader` class in this package.
Every read is checked against the reader's window before any data is touched, and failures are reported via the
`vpkit.errors` taxonomy rather than as `IndexError` or `struct.error`.
"""
