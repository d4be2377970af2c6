"""
Readers for the VP archive container and for the 8-bit indexed PCX images typically found inside it.

The two decoders are pure functions over in-memory buffers:

- `vpkit.vp_archive.parse_directory` turns a container into a flat list of entries annotated with their
  reconstructed paths
- `vpkit.pcx_image.decode_raster` turns a PCX image into an RGBA pixel buffer, with pure green treated as
  transparent

Both treat their input as untrusted and report malformed data via the exceptions in `vpkit.errors`. Reading files,
extracting entries and presenting the results is left to the caller (see `vpkit.vp_archive.access`,
`vpkit.vp_archive.extract` and the `vpkit` command-line tool).
"""


__version__ = '0.3.0'
