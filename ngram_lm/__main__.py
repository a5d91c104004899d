from .ngram_model import main

main()
