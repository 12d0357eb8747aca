import numpy as np
import pandas as pd
from time import perf_counter
from c45forest import BaggingTreesClassifier, C45Classifier, RandomForestClassifier
from c45forest.datasets import load_play_tennis_continuous

data = load_play_tennis_continuous()
feats = data.feature_names

tree = C45Classifier(continuous_features=["Temp", "Humidity"],
                     feature_names=feats, class_names=data.class_names)
t0 = perf_counter(); tree.fit(data.X, data.y); print(f"C4.5 fit: {perf_counter()-t0:.3f} s")
tree.print_tree()

models = {
    "bagging": BaggingTreesClassifier(n_trees=11, b_ratio=0.7, continuous_features=data.continuous,
                                      feature_names=feats, class_names=data.class_names),
    "forest": RandomForestClassifier(n_trees=11, b_ratio=0.7, fb_ratio=0.7,
                                     continuous_features=data.continuous, feature_names=feats,
                                     class_names=data.class_names, n_jobs=2),
}

rows = []
for name, model in models.items():
    t0 = perf_counter(); model.fit(data.X, data.y); elapsed = perf_counter() - t0
    rows.append({"model": name, "fit_s": round(elapsed, 3),
                 "train_acc": model.score(data.X, data.y),
                 "trees": sum(t is not None for t in model.estimators_)})
print(pd.DataFrame(rows))

rf = models["forest"]
for l, (t, cols) in enumerate(zip(rf.estimators_, rf.features_)):
    print(f"tree {l}: columns {[feats[c] for c in cols]}, leaves {len(t.tree_.leaves)}")

z = np.array([2, 72, 95, 0])  # Sunny, 72F, 95% humidity, Weak wind
print("forest classify", z.tolist(), "->", rf.classify(z))
