"""Performance memory, lesson extraction and the runtime trading policy."""