"""Tool registry, schema builder, workspace policy and built-in file, shell, web and memory tools."""