"""
ShaderAssist: polls a shader source directory and recompiles
modified GLSL files to SPIR-V with an external compiler.
"""

__version__ = "0.1.0"
